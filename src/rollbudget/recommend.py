from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

from .compensation import get_compensated_target, round_half_up
from .config import ConfigLike, resolve_config
from .types import IntakeEvent, Recommendation, TrackerConfig
from .window import consumed_last_24h, hours_since_last_event, latest_event_at_or_before, remaining_budget

logger = logging.getLogger(__name__)

# below this the 24h target counts as reached
NEGLIGIBLE_REMAINING = 50
MAX_EVENTS_AHEAD = 4


def calculate_event_size(
    remaining: float, consumed: float, target: float, config: TrackerConfig
) -> Tuple[float, float, str]:
    """Suggested (min, max, reasoning) for the next event given the remaining budget."""
    unit = config.unit_label
    if remaining <= NEGLIGIBLE_REMAINING:
        return 0, 0, "You've reached your 24h target. Budget will free up as time passes."

    if remaining < config.min_event_size:
        return (
            0,
            remaining,
            f"Limited budget remaining ({round_half_up(remaining):.0f} {unit}). Small amount only if needed.",
        )

    avg_size = (config.min_event_size + config.max_event_size) / 2
    if avg_size > 0:
        estimated = max(1.0, min(float(MAX_EVENTS_AHEAD), remaining / avg_size))
    else:
        estimated = float(MAX_EVENTS_AHEAD)
    ideal = remaining / estimated

    lo = max(config.min_event_size, min(remaining, ideal * 0.7))
    hi = max(lo, min(config.max_event_size, remaining, ideal * 1.3))

    percent = round_half_up(consumed / target * 100) if target > 0 else 0
    reasoning = (
        f"{percent:.0f}% of 24h budget used. "
        f"{round_half_up(remaining):.0f} {unit} available for ~{round_half_up(estimated):.0f} more event(s)."
    )
    return lo, hi, reasoning


def get_recommendation(
    events: Iterable[IntakeEvent], now: datetime, config: ConfigLike = None
) -> Recommendation:
    cfg = resolve_config(config)
    events = list(events)

    compensation = get_compensated_target(events, now, cfg)
    target = compensation.adjusted_target

    consumed = consumed_last_24h(events, now)
    remaining = remaining_budget(events, now, target)
    since_last = hours_since_last_event(events, now)
    last_time = latest_event_at_or_before(events, now)

    wait_until: Optional[datetime] = None
    if since_last is not None and last_time is not None and since_last < cfg.min_interval_hours:
        wait_until = last_time + timedelta(hours=cfg.min_interval_hours)

    lo, hi, reasoning = calculate_event_size(remaining, consumed, target, cfg)
    percent_used = consumed / target * 100 if target > 0 else 0.0

    logger.debug(
        "recommendation at %s: consumed=%.1f remaining=%.1f range=[%.1f, %.1f] wait_until=%s",
        now.isoformat(), consumed, remaining, lo, hi, wait_until,
    )

    return Recommendation(
        consumed_last_24h=consumed,
        remaining_last_24h=remaining,
        effective_target=target,
        base_target=cfg.target_daily_amount,
        recommended_min=lo,
        recommended_max=hi,
        wait_until=wait_until,
        reasoning=reasoning,
        hours_since_last_event=since_last,
        last_event_time=last_time,
        percent_used=percent_used,
        compensation=compensation,
    )
