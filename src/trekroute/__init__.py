"""TrekRoute — Experiment-routed search across interchangeable SQLite backends."""

__version__ = "0.1.0"
