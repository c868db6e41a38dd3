"""
Time-window aggregation over intake events.

Windows are half-open: ``(window_start, window_end]``. An event exactly at
the start is excluded, one exactly at the end is included.
"""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .types import IntakeEvent

DAY = timedelta(hours=24)
HOUR = timedelta(hours=1)


def _in_window(e: IntakeEvent, window_start: datetime, window_end: datetime) -> bool:
    return window_start < e.occurred_at <= window_end


def sum_in_window(events: Iterable[IntakeEvent], window_start: datetime, window_end: datetime) -> float:
    total = 0.0
    for e in events:
        if _in_window(e, window_start, window_end):
            total += e.value
    return total


def events_in_window(events: Iterable[IntakeEvent], window_start: datetime, window_end: datetime) -> List[IntakeEvent]:
    """Events inside the window, most recent first."""
    hits = [e for e in events if _in_window(e, window_start, window_end)]
    hits.sort(key=lambda e: e.occurred_at, reverse=True)
    return hits


def consumed_last_24h(events: Iterable[IntakeEvent], as_of: datetime) -> float:
    return sum_in_window(events, as_of - DAY, as_of)


def events_in_last_24h(events: Iterable[IntakeEvent], as_of: datetime) -> List[IntakeEvent]:
    return events_in_window(events, as_of - DAY, as_of)


def remaining_budget(events: Iterable[IntakeEvent], as_of: datetime, target: float) -> float:
    consumed = consumed_last_24h(events, as_of)
    return max(0.0, min(target, target - consumed))


def latest_event_at_or_before(events: Iterable[IntakeEvent], as_of: datetime) -> Optional[datetime]:
    latest: Optional[datetime] = None
    for e in events:
        if e.occurred_at <= as_of and (latest is None or e.occurred_at > latest):
            latest = e.occurred_at
    return latest


def hours_since_last_event(events: Iterable[IntakeEvent], as_of: datetime) -> Optional[float]:
    last = latest_event_at_or_before(events, as_of)
    if last is None:
        return None
    return (as_of - last) / HOUR
