"""Rolling 24h consumption budget: windowed sums, compensation, recommendations and forecasts."""

from .compensation import calculate_weighted_deviation, get_compensated_target
from .config import DEFAULT_CONFIG, load_config, merge_config, resolve_config
from .days import group_by_day
from .errors import ExitCode, InvalidConfiguration, InvalidInput, RollBudgetException, RollBudgetProblem
from .forecast import get_average_daily, get_forecast, get_upcoming_expirations
from .formatting import format_duration, format_time_until
from .recommend import calculate_event_size, get_recommendation
from .types import (
    CompensationResult,
    CompensationSettings,
    DaySummary,
    DeviationAnalysis,
    ExpiringEvent,
    ForecastPoint,
    IntakeEvent,
    PeriodBreakdown,
    Recommendation,
    TrackerConfig,
)
from .window import (
    consumed_last_24h,
    events_in_last_24h,
    events_in_window,
    hours_since_last_event,
    latest_event_at_or_before,
    remaining_budget,
    sum_in_window,
)

__all__ = [
    "calculate_weighted_deviation",
    "get_compensated_target",
    "DEFAULT_CONFIG",
    "load_config",
    "merge_config",
    "resolve_config",
    "group_by_day",
    "ExitCode",
    "InvalidConfiguration",
    "InvalidInput",
    "RollBudgetException",
    "RollBudgetProblem",
    "get_average_daily",
    "get_forecast",
    "get_upcoming_expirations",
    "format_duration",
    "format_time_until",
    "calculate_event_size",
    "get_recommendation",
    "CompensationResult",
    "CompensationSettings",
    "DaySummary",
    "DeviationAnalysis",
    "ExpiringEvent",
    "ForecastPoint",
    "IntakeEvent",
    "PeriodBreakdown",
    "Recommendation",
    "TrackerConfig",
    "consumed_last_24h",
    "events_in_last_24h",
    "events_in_window",
    "hours_since_last_event",
    "latest_event_at_or_before",
    "remaining_budget",
    "sum_in_window",
]
