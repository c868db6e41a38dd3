from __future__ import annotations
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidConfiguration


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts is not None else None


def _require_finite(values: Dict[str, float]) -> None:
    for key, value in values.items():
        if not math.isfinite(value):
            raise InvalidConfiguration(
                "RB_CONFIG_NOT_FINITE",
                f"{key} must be a finite number, got {value}",
                details={"key": key, "value": repr(value)},
            )


@dataclass(frozen=True)
class IntakeEvent:
    occurred_at: datetime
    value: float  # expected > 0, not enforced

    def to_dict(self) -> Dict[str, Any]:
        return {"occurred_at": _iso(self.occurred_at), "value": self.value}


@dataclass(frozen=True)
class CompensationSettings:
    # 0 = no compensation, 1 = full compensation
    strength: float = 0.2
    # weight ratio between a period and the next-newer one
    decay_factor: float = 0.85
    window_hours: float = 96

    def __post_init__(self) -> None:
        _require_finite({
            "compensation.strength": self.strength,
            "compensation.decay_factor": self.decay_factor,
            "compensation.window_hours": self.window_hours,
        })
        if not 0.0 <= self.strength <= 1.0:
            raise InvalidConfiguration(
                "RB_CONFIG_STRENGTH_OUT_OF_RANGE",
                f"compensation.strength must be within [0, 1], got {self.strength}",
                details={"strength": self.strength},
                remediation="Use 0 to disable compensation and 1 for full compensation.",
            )
        if not 0.0 < self.decay_factor <= 1.0:
            raise InvalidConfiguration(
                "RB_CONFIG_DECAY_OUT_OF_RANGE",
                f"compensation.decay_factor must be within (0, 1], got {self.decay_factor}",
                details={"decay_factor": self.decay_factor},
                remediation="Pick a decay factor such as 0.85; 1 weights every period equally.",
            )
        if self.window_hours <= 0:
            raise InvalidConfiguration(
                "RB_CONFIG_WINDOW_NOT_POSITIVE",
                f"compensation.window_hours must be > 0, got {self.window_hours}",
                details={"window_hours": self.window_hours},
            )


@dataclass(frozen=True)
class TrackerConfig:
    target_daily_amount: float = 2000
    min_event_size: float = 100
    max_event_size: float = 1000
    min_interval_hours: float = 2.0
    compensation: CompensationSettings = field(default_factory=CompensationSettings)
    unit_label: str = "kcal"

    def __post_init__(self) -> None:
        _require_finite({
            "target_daily_amount": self.target_daily_amount,
            "min_event_size": self.min_event_size,
            "max_event_size": self.max_event_size,
            "min_interval_hours": self.min_interval_hours,
        })
        if self.target_daily_amount <= 0:
            raise InvalidConfiguration(
                "RB_CONFIG_TARGET_NOT_POSITIVE",
                f"target_daily_amount must be > 0, got {self.target_daily_amount}",
                details={"target_daily_amount": self.target_daily_amount},
            )
        if self.min_event_size < 0:
            raise InvalidConfiguration(
                "RB_CONFIG_MIN_EVENT_NEGATIVE",
                f"min_event_size must be >= 0, got {self.min_event_size}",
                details={"min_event_size": self.min_event_size},
            )
        if self.max_event_size < self.min_event_size:
            raise InvalidConfiguration(
                "RB_CONFIG_EVENT_SIZE_INVERTED",
                "max_event_size must be >= min_event_size "
                f"(got min={self.min_event_size}, max={self.max_event_size})",
                details={"min_event_size": self.min_event_size, "max_event_size": self.max_event_size},
                remediation="Swap the two values or raise max_event_size.",
            )
        if self.min_interval_hours < 0:
            raise InvalidConfiguration(
                "RB_CONFIG_INTERVAL_NEGATIVE",
                f"min_interval_hours must be >= 0, got {self.min_interval_hours}",
                details={"min_interval_hours": self.min_interval_hours},
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_daily_amount": self.target_daily_amount,
            "min_event_size": self.min_event_size,
            "max_event_size": self.max_event_size,
            "min_interval_hours": self.min_interval_hours,
            "compensation": {
                "strength": self.compensation.strength,
                "decay_factor": self.compensation.decay_factor,
                "window_hours": self.compensation.window_hours,
            },
            "unit_label": self.unit_label,
        }


@dataclass(frozen=True)
class PeriodBreakdown:
    period_start: datetime
    period_end: datetime
    hours_ago: float  # offset of period_end from as_of
    consumed_amount: float
    expected_amount: float
    deviation: float  # positive = over-consumed
    weight: float
    weighted_deviation: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "period_start": _iso(self.period_start),
            "period_end": _iso(self.period_end),
            "hours_ago": self.hours_ago,
            "consumed_amount": self.consumed_amount,
            "expected_amount": self.expected_amount,
            "deviation": self.deviation,
            "weight": self.weight,
            "weighted_deviation": self.weighted_deviation,
        }


@dataclass(frozen=True)
class DeviationAnalysis:
    weighted_deviation: float
    total_weight: float
    periods: Tuple[PeriodBreakdown, ...]  # most recent period first


@dataclass(frozen=True)
class CompensationResult:
    adjusted_target: float
    compensation_amount: float  # negative = target reduced
    reason: str
    raw_deviation: float
    is_active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adjusted_target": self.adjusted_target,
            "compensation_amount": self.compensation_amount,
            "reason": self.reason,
            "raw_deviation": self.raw_deviation,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class Recommendation:
    consumed_last_24h: float
    remaining_last_24h: float
    effective_target: float
    base_target: float
    recommended_min: float
    recommended_max: float
    wait_until: Optional[datetime]
    reasoning: str
    hours_since_last_event: Optional[float]
    last_event_time: Optional[datetime]
    percent_used: float
    compensation: CompensationResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consumed_last_24h": self.consumed_last_24h,
            "remaining_last_24h": self.remaining_last_24h,
            "effective_target": self.effective_target,
            "base_target": self.base_target,
            "recommended_min": self.recommended_min,
            "recommended_max": self.recommended_max,
            "wait_until": _iso(self.wait_until),
            "reasoning": self.reasoning,
            "hours_since_last_event": self.hours_since_last_event,
            "last_event_time": _iso(self.last_event_time),
            "percent_used": self.percent_used,
            "compensation": self.compensation.to_dict(),
        }


@dataclass(frozen=True)
class ForecastPoint:
    time: datetime
    available_budget: float

    def to_dict(self) -> Dict[str, Any]:
        return {"time": _iso(self.time), "available_budget": self.available_budget}


@dataclass(frozen=True)
class ExpiringEvent:
    event: IntakeEvent
    expires_at: datetime  # event leaves the trailing 24h window here

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.event.to_dict(), "expires_at": _iso(self.expires_at)}


@dataclass(frozen=True)
class DaySummary:
    date: str  # YYYY-MM-DD in the caller's clock
    events: Tuple[IntakeEvent, ...]
    total: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "events": [e.to_dict() for e in self.events],
            "total": self.total,
        }
