"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import importlib
import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from trekroute import __version__
from trekroute.api.deps import set_engine
from trekroute.api.pages import router as pages_router
from trekroute.api.v1.router import router as v1_router
from trekroute.config.settings import CLI_OVERRIDES_ENV, CONFIG_FILE_ENV, BackendSettings, Settings
from trekroute.core.engine import TrekRouteEngine
from trekroute.models.experiment import Variant
from trekroute.observability.logging import setup_logging

_STATIC_DIR = Path(__file__).parent / "static"

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads from environment.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = _load_settings()

    setup_logging(settings.observability)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        logger.info("Starting TrekRoute v%s", __version__)

        engine = TrekRouteEngine(settings)
        await engine.initialize()
        await _register_adapters(engine, settings.backends)

        set_engine(engine)
        app.state.settings = settings
        app.state.engine = engine

        logger.info("TrekRoute is ready to serve requests on port %d", settings.server.port)
        yield

        logger.info("Shutting down TrekRoute...")
        await engine.shutdown()
        set_engine(None)
        logger.info("TrekRoute shutdown complete")

    app = FastAPI(
        title="TrekRoute",
        description=(
            "Experiment-routed search — each request is served by the backend its "
            "experiment variant selects, and the response time is reported back."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.include_router(pages_router)
    app.include_router(v1_router, prefix="/v1")

    if _STATIC_DIR.exists():
        app.mount("/static", StaticFiles(directory=str(_STATIC_DIR)), name="static")

    return app


def _load_settings() -> Settings:
    """Build settings for a launched worker process.

    Reads the explicit config file, else an auto-detected
    trekroute-config.yaml, else the environment alone. Launcher flag
    overrides are applied last so they win over YAML values.
    """
    yaml_path = Path(os.environ.get(CONFIG_FILE_ENV, "trekroute-config.yaml"))
    settings = Settings.from_yaml(yaml_path) if yaml_path.exists() else Settings()

    raw_overrides = os.environ.get(CLI_OVERRIDES_ENV)
    if raw_overrides:
        settings.apply_overrides(json.loads(raw_overrides))
    return settings


# ── Adapter auto-registration ──

# Maps each variant to (module_path, class_name) for lazy import
_ADAPTER_MAP: dict[Variant, tuple[str, str]] = {
    Variant.LOCAL: ("trekroute.adapters.local.adapter", "LocalSQLiteAdapter"),
    Variant.REMOTE_A: ("trekroute.adapters.turso.adapter", "TursoAdapter"),
    Variant.REMOTE_B: ("trekroute.adapters.sqlitecloud.adapter", "SQLiteCloudAdapter"),
}


def _adapter_kwargs(variant: Variant, backends: BackendSettings) -> dict[str, Any]:
    """Build constructor kwargs for ``variant`` from backend settings."""
    common: dict[str, Any] = {"table": backends.table, "timeout": backends.timeout_seconds}
    if variant is Variant.LOCAL:
        return {**common, "db_path": backends.local_sqlite_path}
    if variant is Variant.REMOTE_A:
        return {**common, "url": backends.turso_url, "auth_token": backends.turso_auth_token}
    return {
        **common,
        "connection_string": backends.sqlite_cloud_connection,
        "weblite_port": backends.sqlite_cloud_weblite_port,
    }


async def _register_adapters(engine: TrekRouteEngine, backends: BackendSettings) -> None:
    """Register and initialise one adapter per variant.

    An adapter that cannot be imported or initialised is logged and left
    out; requests routed to its variant then fail with a 500 while the
    other backends keep serving.
    """
    for variant, (module_path, class_name) in _ADAPTER_MAP.items():
        try:
            module = importlib.import_module(module_path)
            adapter_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            logger.warning("Failed to import adapter for '%s': %s", variant.value, e)
            continue

        engine.adapter_registry.register(variant, adapter_class)
        try:
            await engine.adapter_registry.initialize_adapter(variant, **_adapter_kwargs(variant, backends))
        except Exception:
            logger.warning("Failed to initialise adapter for '%s'", variant.value, exc_info=True)
