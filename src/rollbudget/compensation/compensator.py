from __future__ import annotations
import logging
import math
from datetime import datetime
from typing import Iterable

from ..types import CompensationResult, IntakeEvent, TrackerConfig
from ..window import latest_event_at_or_before
from .deviation import calculate_weighted_deviation

logger = logging.getLogger(__name__)

# correction caps per call, relative to the base target (reductions may be larger)
MAX_REDUCTION_RATIO = 0.30
MAX_INCREASE_RATIO = 0.15
# absolute bounds on the adjusted target
TARGET_FLOOR_RATIO = 0.60
TARGET_CEILING_RATIO = 1.20
# absolute units, independent of the target's scale
ACTIVE_THRESHOLD = 10


def round_half_up(x: float) -> float:
    return math.floor(x + 0.5)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def _bounded_target(base: float, value: float) -> float:
    return _clamp(round_half_up(value), base * TARGET_FLOOR_RATIO, base * TARGET_CEILING_RATIO)


def get_compensated_target(
    events: Iterable[IntakeEvent], as_of: datetime, config: TrackerConfig
) -> CompensationResult:
    """
    Adjust the daily target against recent over/under consumption.

    Over-consumption lowers the target, under-consumption raises it a little.
    The correction is capped at -30%/+15% of the base target and the final
    target never leaves [60%, 120%] of it.
    """
    events = list(events)
    base = config.target_daily_amount
    analysis = calculate_weighted_deviation(events, as_of, config)
    raw_deviation = sum(p.deviation for p in analysis.periods)

    if latest_event_at_or_before(events, as_of) is None:
        # no history yet: empty periods are not under-consumption
        logger.debug("compensation: no events at or before %s, keeping base target", as_of.isoformat())
        return CompensationResult(
            adjusted_target=_bounded_target(base, base),
            compensation_amount=0,
            reason="On track with your targets.",
            raw_deviation=round_half_up(raw_deviation),
            is_active=False,
        )

    normalized = analysis.weighted_deviation / analysis.total_weight if analysis.total_weight > 0 else 0.0

    compensation = -(normalized * config.compensation.strength)
    compensation = _clamp(compensation, -base * MAX_REDUCTION_RATIO, base * MAX_INCREASE_RATIO)

    adjusted = _bounded_target(base, base + compensation)

    is_active = abs(compensation) > ACTIVE_THRESHOLD
    unit = config.unit_label
    if not is_active:
        reason = "On track with your targets."
    elif compensation < 0:
        reason = (
            "Compensating for recent over-consumption. "
            f"Target reduced by {round_half_up(-compensation):.0f} {unit}."
        )
    else:
        reason = (
            "Room to catch up from under-consumption. "
            f"Target increased by {round_half_up(compensation):.0f} {unit}."
        )

    logger.debug(
        "compensation: periods=%d normalized_deviation=%.2f adjustment=%.2f target=%s->%s",
        len(analysis.periods), normalized, compensation, base, adjusted,
    )

    return CompensationResult(
        adjusted_target=adjusted,
        compensation_amount=round_half_up(compensation),
        reason=reason,
        raw_deviation=round_half_up(raw_deviation),
        is_active=is_active,
    )
