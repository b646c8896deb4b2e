"""Core routing layer — matcher, experiment resolution, tracking, orchestration."""
