from __future__ import annotations
import math
from datetime import datetime, timedelta

from .compensation import round_half_up


def format_duration(hours: float) -> str:
    """Render fractional hours as ``"2h 30m"``, or ``"45m"`` under an hour."""
    h = math.floor(hours)
    m = round_half_up((hours - h) * 60)
    if h > 0:
        return f"{h}h {m}m"
    return f"{m}m"


def format_time_until(target: datetime, now: datetime) -> str:
    diff = target - now
    if diff <= timedelta(0):
        return "Now"

    hours, rest = divmod(diff, timedelta(hours=1))
    minutes = round_half_up(rest / timedelta(minutes=1))
    if hours > 0:
        return f"in {hours}h {minutes}m"
    return f"in {minutes}m"
