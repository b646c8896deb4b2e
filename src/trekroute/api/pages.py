"""HTML pages — Search form and rendered results.

Every code path ends in a rendered page: validation problems render with
400, backend failures with a generic 500 message, and successful searches
with the record (or a no-results note), the backend label, and timing.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fastapi import APIRouter, BackgroundTasks, Depends, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from trekroute.api.deps import get_engine
from trekroute.core.engine import TrekRouteEngine
from trekroute.core.exceptions import SearchValidationError
from trekroute.models.record import Record
from trekroute.models.response import PageContext

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server Error"

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

router = APIRouter(include_in_schema=False)


def _companion_host(request: Request, engine: TrekRouteEngine) -> str | None:
    """Link to the companion app on the same hostname the client used."""
    port = engine.settings.server.companion_port
    hostname = request.url.hostname
    if port is None or not hostname:
        return None
    return f"http://{hostname}:{port}"


def _render(
    request: Request,
    engine: TrekRouteEngine,
    *,
    status_code: int = 200,
    query_time: str | None = None,
    db_type: str | None = None,
    data: Record | str | None = None,
) -> HTMLResponse:
    page = PageContext(
        query_time=query_time,
        db_type=db_type,
        data=data,
        host=_companion_host(request, engine),
        status_code=status_code,
    )
    return templates.TemplateResponse(request, "index.html", {"page": page}, status_code=status_code)


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    engine: TrekRouteEngine = Depends(get_engine),
) -> HTMLResponse:
    """Render the empty search form."""
    return _render(request, engine)


@router.post("/search", response_class=HTMLResponse)
async def search_page(
    request: Request,
    background_tasks: BackgroundTasks,
    query: str | None = Form(default=None),
    engine: TrekRouteEngine = Depends(get_engine),
) -> HTMLResponse:
    """Search the experiment-selected backend and render the outcome."""
    try:
        outcome = await engine.search(query)
    except SearchValidationError as e:
        return _render(request, engine, status_code=400, data=str(e))

    if outcome.failed:
        return _render(request, engine, status_code=500, data=INTERNAL_ERROR_MESSAGE)

    # Background tasks run once the response body has been sent.
    background_tasks.add_task(engine.track_response_time, outcome)
    return _render(
        request,
        engine,
        query_time=outcome.query_time,
        db_type=outcome.label,
        data=outcome.record if outcome.matched else outcome.no_results_message,
    )
