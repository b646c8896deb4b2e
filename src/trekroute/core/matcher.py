"""Record matcher — first-hit, case-insensitive substring search."""

from __future__ import annotations

from collections.abc import Iterable

from trekroute.models.record import Record


def match_record(term: str, records: Iterable[Record]) -> Record | None:
    """Return the first record containing ``term``, or None.

    A record qualifies when the case-folded term is a substring of its
    series name, captain, description, or any single trimmed crew member.
    An empty term matches the first record; callers reject it beforehand.
    """
    needle = term.casefold()
    for record in records:
        fields = (record.series_name, record.captain, record.description)
        if any(needle in field.casefold() for field in fields):
            return record
        if any(needle in member.casefold() for member in record.crew_members):
            return record
    return None
