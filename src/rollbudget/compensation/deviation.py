from __future__ import annotations
import math
from datetime import datetime, timedelta
from typing import Iterable, List

from ..types import DeviationAnalysis, IntakeEvent, PeriodBreakdown, TrackerConfig
from ..window import sum_in_window

PERIOD_HOURS = 6


def calculate_weighted_deviation(
    events: Iterable[IntakeEvent], as_of: datetime, config: TrackerConfig
) -> DeviationAnalysis:
    """
    Recency-weighted drift from the linear target rate over the compensation window.

    The window is cut into 6h periods counted backward from ``as_of``; the
    oldest one is truncated at ``window_hours``. Period ``i`` gets weight
    ``decay_factor ** i`` so the most recent period dominates.
    Positive deviation = over-consumed.
    """
    events = list(events)
    window_hours = config.compensation.window_hours
    decay = config.compensation.decay_factor
    target_per_hour = config.target_daily_amount / 24.0

    periods: List[PeriodBreakdown] = []
    total_weighted = 0.0
    total_weight = 0.0

    for i in range(math.ceil(window_hours / PERIOD_HOURS)):
        end_ago = i * PERIOD_HOURS
        start_ago = min((i + 1) * PERIOD_HOURS, window_hours)
        if end_ago >= window_hours:
            continue

        period_end = as_of - timedelta(hours=end_ago)
        period_start = as_of - timedelta(hours=start_ago)
        length = start_ago - end_ago

        consumed = sum_in_window(events, period_start, period_end)
        expected = target_per_hour * length
        deviation = consumed - expected
        weight = decay ** i
        weighted = deviation * weight

        total_weighted += weighted
        total_weight += weight
        periods.append(
            PeriodBreakdown(
                period_start=period_start,
                period_end=period_end,
                hours_ago=end_ago,
                consumed_amount=consumed,
                expected_amount=expected,
                deviation=deviation,
                weight=weight,
                weighted_deviation=weighted,
            )
        )

    return DeviationAnalysis(
        weighted_deviation=total_weighted,
        total_weight=total_weight,
        periods=tuple(periods),
    )
