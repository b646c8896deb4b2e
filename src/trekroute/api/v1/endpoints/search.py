"""Search endpoint — JSON access to experiment-routed search.

Mirrors the HTML form: 400 for a blank query, 500 with a generic message
when the selected backend fails, 200 otherwise. Timing and backend are
only reported on success.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from trekroute.api.deps import get_engine
from trekroute.core.engine import TrekRouteEngine
from trekroute.core.exceptions import SearchValidationError
from trekroute.models.response import SearchRequest, SearchResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/search",
    response_model=SearchResponse,
    summary="Experiment-Routed Search",
    description=(
        "Resolve the caller's experiment variant, query the matching backend, "
        "and return the first matching record along with the backend label and "
        "query time. The response-time metric is tracked after the response is sent."
    ),
    responses={
        400: {"description": "Missing or blank query"},
        500: {"description": "The selected backend failed"},
    },
)
async def search(
    request: SearchRequest,
    background_tasks: BackgroundTasks,
    engine: TrekRouteEngine = Depends(get_engine),
) -> SearchResponse:
    """Execute one search against the experiment-selected backend."""
    try:
        outcome = await engine.search(request.query)
    except SearchValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if outcome.failed:
        raise HTTPException(status_code=500, detail="Internal Server Error")

    background_tasks.add_task(engine.track_response_time, outcome)
    return SearchResponse.from_outcome(outcome)
