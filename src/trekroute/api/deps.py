"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from trekroute.core.engine import TrekRouteEngine

# Global engine instance (set during application lifespan)
_engine: TrekRouteEngine | None = None


def set_engine(engine: TrekRouteEngine | None) -> None:
    """Set the global engine instance (called during app lifespan)."""
    global _engine
    _engine = engine


def get_engine() -> TrekRouteEngine:
    """Get the global TrekRoute engine instance.

    Raises:
        RuntimeError: If the engine is not initialized.
    """
    if _engine is None:
        raise RuntimeError("TrekRoute engine not initialized. Is the server running?")
    return _engine
