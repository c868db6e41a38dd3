"""Recency-weighted deviation analysis and target compensation."""

from .deviation import PERIOD_HOURS, calculate_weighted_deviation
from .compensator import (
    ACTIVE_THRESHOLD,
    MAX_INCREASE_RATIO,
    MAX_REDUCTION_RATIO,
    TARGET_CEILING_RATIO,
    TARGET_FLOOR_RATIO,
    get_compensated_target,
    round_half_up,
)

__all__ = [
    "PERIOD_HOURS",
    "calculate_weighted_deviation",
    "ACTIVE_THRESHOLD",
    "MAX_INCREASE_RATIO",
    "MAX_REDUCTION_RATIO",
    "TARGET_CEILING_RATIO",
    "TARGET_FLOOR_RATIO",
    "get_compensated_target",
    "round_half_up",
]
