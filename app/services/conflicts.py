"""Service for detecting scheduling conflicts between calendar events."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from dateutil.parser import isoparse

from app.domain.models import ConflictInfo, assume_utc


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _as_datetime(value: datetime | str) -> datetime:
    if not isinstance(value, datetime):
        value = isoparse(value)
    return assume_utc(value)


def _interval(obj: Any) -> tuple[datetime, datetime]:
    """Return (start, end); a missing end collapses to the start instant."""
    start = _as_datetime(_field(obj, "start_datetime"))
    raw_end = _field(obj, "end_datetime")
    end = _as_datetime(raw_end) if raw_end else start
    return start, end


def conflict_message(count: int) -> str | None:
    if count == 0:
        return None
    return f"This event overlaps with {count} other event{'s' if count > 1 else ''}"


def detect_conflicts(
    candidate: Any,
    existing_events: Iterable[Any],
    exclude_event_id: str | None = None,
) -> ConflictInfo:
    """Return every existing event whose interval shares an instant with *candidate*.

    Overlap rule: conflict if new_start <= existing_end AND existing_start <= new_end.
    Exact boundary touches (end == start) ARE considered conflicts.

    *candidate* and the events may be models or plain mappings carrying
    ``start_datetime``/``end_datetime`` as datetimes or ISO-8601 strings.
    Naive timestamps are read as UTC.
    Conflicts keep the order of *existing_events*.
    """
    new_start, new_end = _interval(candidate)

    conflicts: list[Any] = []
    for event in existing_events:
        if exclude_event_id and _field(event, "id") == exclude_event_id:
            continue
        event_start, event_end = _interval(event)
        if new_start <= event_end and event_start <= new_end:
            conflicts.append(event)

    return ConflictInfo(
        has_conflict=len(conflicts) > 0,
        conflicting_events=conflicts,
        message=conflict_message(len(conflicts)),
    )
