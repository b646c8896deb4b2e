"""Health check endpoints — System and backend adapter health monitoring."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from trekroute import __version__
from trekroute.adapters.base.adapter import AdapterHealth
from trekroute.api.deps import get_engine
from trekroute.core.engine import TrekRouteEngine

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Response models ──────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="TrekRoute server version")
    service: str = Field(description="Service name ('trekroute')")
    experiment_key: str = Field(description="Experiment variable used for routing")
    default_variant: str = Field(description="Variant used when assignment is unavailable")
    active_adapters: list[str] = Field(description="Variants with an initialised backend adapter")


class AdapterHealthResponse(BaseModel):
    """Per-adapter health check response, keyed by variant."""

    adapters: dict[str, AdapterHealth] = Field(
        description="Map of variant key to its backend health status",
    )


# ── Endpoints ────────────────────────────────────────────────────────────


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System Health Check",
)
async def health_check(
    engine: TrekRouteEngine = Depends(get_engine),
) -> HealthResponse:
    """Basic health check endpoint with routing info."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="trekroute",
        experiment_key=engine.settings.experiment.key,
        default_variant=engine.settings.experiment.default_variant.value,
        active_adapters=engine.adapter_registry.active_adapters,
    )


@router.get(
    "/health/adapters",
    response_model=AdapterHealthResponse,
    summary="Adapter Health Check",
)
async def adapter_health(
    engine: TrekRouteEngine = Depends(get_engine),
) -> AdapterHealthResponse:
    """Check health of all backend adapters."""
    adapter_statuses = await engine.adapter_registry.health_check_all()
    return AdapterHealthResponse(adapters=adapter_statuses)
