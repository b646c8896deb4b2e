"""Data models — records, experiment identities, and response shapes."""

from trekroute.models.experiment import MetricEvent, UserIdentity, Variant
from trekroute.models.record import Record
from trekroute.models.response import PageContext, QueryOutcome, SearchResponse

__all__ = [
    "MetricEvent",
    "PageContext",
    "QueryOutcome",
    "Record",
    "SearchResponse",
    "UserIdentity",
    "Variant",
]
