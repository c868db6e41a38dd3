"""
Budget projection as events age out of the trailing 24h window.
"""
from __future__ import annotations
from datetime import datetime, timedelta
from typing import Iterable, List

from .compensation import get_compensated_target
from .config import ConfigLike, resolve_config
from .errors import InvalidInput
from .types import ExpiringEvent, ForecastPoint, IntakeEvent
from .window import DAY, remaining_budget


def get_forecast(
    events: Iterable[IntakeEvent],
    now: datetime,
    config: ConfigLike = None,
    hours: float = 12,
    step_hours: float = 2,
) -> List[ForecastPoint]:
    """
    Remaining budget at ``now``, ``now + step``, ... up to ``now + hours``.

    The adjusted target is computed once at ``now`` and held fixed; only the
    window contents move.
    """
    if step_hours <= 0:
        raise InvalidInput(
            "RB_FORECAST_STEP_NOT_POSITIVE",
            f"step_hours must be > 0, got {step_hours}",
            details={"step_hours": step_hours},
        )
    cfg = resolve_config(config)
    events = list(events)
    target = get_compensated_target(events, now, cfg).adjusted_target

    points: List[ForecastPoint] = []
    i = 0
    while i * step_hours <= hours:
        t = now + timedelta(hours=i * step_hours)
        points.append(ForecastPoint(time=t, available_budget=remaining_budget(events, t, target)))
        i += 1
    return points


def get_upcoming_expirations(
    events: Iterable[IntakeEvent], now: datetime, within_hours: float = 6
) -> List[ExpiringEvent]:
    """Events leaving the 24h window within the next ``within_hours``, soonest first."""
    window_start = now - DAY
    window_end = now - timedelta(hours=24 - within_hours)
    out = [
        ExpiringEvent(event=e, expires_at=e.occurred_at + DAY)
        for e in events
        if window_start < e.occurred_at < window_end
    ]
    out.sort(key=lambda x: x.expires_at)
    return out


def get_average_daily(events: Iterable[IntakeEvent], as_of: datetime, days: float = 7) -> float:
    if days <= 0:
        return 0.0
    start = as_of - timedelta(days=days)
    relevant = [e.value for e in events if start < e.occurred_at < as_of]
    if not relevant:
        return 0.0
    return sum(relevant) / days
