from __future__ import annotations
from typing import Dict, Iterable, List

from .types import DaySummary, IntakeEvent


def group_by_day(events: Iterable[IntakeEvent]) -> List[DaySummary]:
    """
    Bucket events by calendar date in the timestamps' own clock.

    Events are oldest first within a day; days are newest first.
    """
    buckets: Dict[str, List[IntakeEvent]] = {}
    for e in events:
        buckets.setdefault(e.occurred_at.date().isoformat(), []).append(e)

    days = [
        DaySummary(
            date=key,
            events=tuple(sorted(day_events, key=lambda e: e.occurred_at)),
            total=sum(e.value for e in day_events),
        )
        for key, day_events in buckets.items()
    ]
    days.sort(key=lambda d: d.date, reverse=True)
    return days
