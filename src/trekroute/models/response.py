"""Response models — query outcomes, JSON API payloads, and page render context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from trekroute.models.experiment import UserIdentity, Variant
from trekroute.models.record import Record


class QueryOutcome(BaseModel):
    """Result of dispatching one search term to one backend.

    Exactly one of three shapes: a matched ``record``, no match (both
    ``record`` and ``error`` unset), or a failure (``error`` set). The
    elapsed time is recorded in every case.
    """

    model_config = ConfigDict(frozen=True)

    term: str
    identity: UserIdentity
    variant: Variant
    record: Record | None = None
    error: str | None = Field(default=None, description="Internal failure summary, never rendered")
    elapsed_ms: int = Field(default=0, ge=0)

    @property
    def label(self) -> str:
        return self.variant.label

    @property
    def matched(self) -> bool:
        return self.record is not None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def status(self) -> str:
        if self.failed:
            return "error"
        return "match" if self.matched else "no_results"

    @property
    def query_time(self) -> str:
        return f"{self.elapsed_ms}ms"

    @property
    def no_results_message(self) -> str:
        return f"No results found for '{self.term}'"


class SearchRequest(BaseModel):
    """JSON body for ``POST /v1/search``.

    ``query`` is optional here so that empty input reaches the engine's own
    validation and is answered with 400 rather than a schema error.
    """

    query: str | None = Field(default=None, max_length=2000, description="Search term")


class SearchResponse(BaseModel):
    """JSON response for a successful (match or no-match) search."""

    status: str = Field(description="'match' or 'no_results'")
    backend: str = Field(description="Label of the backend that served the query")
    variant: Variant = Field(description="Experiment variant assigned to this request")
    query_time_ms: int = Field(description="Backend call duration in milliseconds")
    record: Record | None = Field(default=None, description="First matching record")
    message: str | None = Field(default=None, description="Human-readable note for empty results")

    @classmethod
    def from_outcome(cls, outcome: QueryOutcome) -> SearchResponse:
        return cls(
            status=outcome.status,
            backend=outcome.label,
            variant=outcome.variant,
            query_time_ms=outcome.elapsed_ms,
            record=outcome.record,
            message=None if outcome.matched else outcome.no_results_message,
        )


class PageContext(BaseModel):
    """Everything the search page template needs for one request."""

    query_time: str | None = None
    db_type: str | None = None
    data: Record | str | None = None
    host: str | None = None
    status_code: int = 200

    @property
    def has_record(self) -> bool:
        return isinstance(self.data, Record)
