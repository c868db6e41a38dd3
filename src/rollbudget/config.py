"""
Tracker configuration: defaults, partial overrides and file loading.

Overrides are merged per leaf field, including the nested compensation
record, so a caller who only sets ``compensation.strength`` keeps the
default ``decay_factor`` and ``window_hours``.
"""

from __future__ import annotations

import math
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .errors import InvalidConfiguration
from .types import CompensationSettings, TrackerConfig


DEFAULT_CONFIG = TrackerConfig()

_TOP_LEVEL_ALIASES: Dict[str, str] = {
    "target_daily_amount": "target_daily_amount",
    "targetDailyAmount": "target_daily_amount",
    "target_daily_calories": "target_daily_amount",
    "targetDailyCalories": "target_daily_amount",
    "min_event_size": "min_event_size",
    "minEventSize": "min_event_size",
    "min_meal_size": "min_event_size",
    "minMealSize": "min_event_size",
    "max_event_size": "max_event_size",
    "maxEventSize": "max_event_size",
    "max_meal_size": "max_event_size",
    "maxMealSize": "max_event_size",
    "min_interval_hours": "min_interval_hours",
    "minIntervalHours": "min_interval_hours",
    "min_hours_between_meals": "min_interval_hours",
    "minHoursBetweenMeals": "min_interval_hours",
}

_COMPENSATION_ALIASES: Dict[str, str] = {
    "strength": "strength",
    "decay_factor": "decay_factor",
    "decayFactor": "decay_factor",
    "window_hours": "window_hours",
    "windowHours": "window_hours",
}

ConfigLike = Union[None, TrackerConfig, Mapping[str, Any]]


def _number(key: str, value: Any) -> float:
    # bool is an int subclass; a flag here is always a typo
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfiguration(
            "RB_CONFIG_NOT_A_NUMBER",
            f"{key} must be a number, got {type(value).__name__}",
            details={"key": key, "value": repr(value)},
        )
    if not math.isfinite(value):
        raise InvalidConfiguration(
            "RB_CONFIG_NOT_FINITE",
            f"{key} must be a finite number, got {value}",
            details={"key": key, "value": repr(value)},
            remediation="Remove .inf/.nan values from the config file.",
        )
    return value


def _merge_compensation(base: CompensationSettings, override: Any) -> CompensationSettings:
    if override is None:
        return base
    if isinstance(override, CompensationSettings):
        return override
    if not isinstance(override, Mapping):
        raise InvalidConfiguration(
            "RB_CONFIG_COMPENSATION_NOT_OBJECT",
            f"compensation must be a mapping, got {type(override).__name__}",
            details={"type": type(override).__name__},
        )
    changes: Dict[str, Any] = {}
    for k, v in override.items():
        name = _COMPENSATION_ALIASES.get(k)
        if name is None:
            raise InvalidConfiguration(
                "RB_CONFIG_UNKNOWN_KEY",
                f"Unknown compensation setting: {k}",
                details={"key": f"compensation.{k}"},
                remediation="Valid keys: strength, decay_factor, window_hours.",
            )
        changes[name] = _number(f"compensation.{name}", v)
    return replace(base, **changes)


def merge_config(override: Optional[Mapping[str, Any]], base: TrackerConfig = DEFAULT_CONFIG) -> TrackerConfig:
    """
    Merge a partial override over ``base``. The override wins per leaf field.

    The result is a new validated TrackerConfig; ``base`` is never mutated.
    """
    if not override:
        return base
    changes: Dict[str, Any] = {}
    for k, v in override.items():
        if k == "compensation":
            changes["compensation"] = _merge_compensation(base.compensation, v)
        elif k in ("unit_label", "unitLabel", "unit"):
            changes["unit_label"] = str(v)
        elif k in _TOP_LEVEL_ALIASES:
            name = _TOP_LEVEL_ALIASES[k]
            changes[name] = _number(name, v)
        else:
            raise InvalidConfiguration(
                "RB_CONFIG_UNKNOWN_KEY",
                f"Unknown configuration key: {k}",
                details={"key": k},
                remediation="Check the key against the documented configuration fields.",
            )
    return replace(base, **changes)


def resolve_config(config: ConfigLike = None) -> TrackerConfig:
    if config is None:
        return DEFAULT_CONFIG
    if isinstance(config, TrackerConfig):
        return config
    if isinstance(config, Mapping):
        return merge_config(config)
    raise InvalidConfiguration(
        "RB_CONFIG_UNSUPPORTED_TYPE",
        f"Configuration must be a TrackerConfig or a mapping, got {type(config).__name__}",
        details={"type": type(config).__name__},
    )


def load_config(path: Union[str, Path]) -> TrackerConfig:
    """
    Load a tracker configuration from a YAML or JSON file.

    The file must contain a mapping; missing fields fall back to defaults.
    """
    p = Path(path)
    if not p.exists():
        raise InvalidConfiguration(
            "RB_CONFIG_NOT_FOUND",
            f"Config not found: {path}",
            details={"path": str(path)},
            remediation="Verify the path is correct and the file exists.",
        )
    try:
        obj = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise InvalidConfiguration(
            "RB_CONFIG_PARSE_ERROR",
            f"Failed to parse config: {path}",
            details={"path": str(path), "error": repr(e)},
            remediation="Ensure the file is valid YAML or JSON encoded in UTF-8.",
            cause=e,
        ) from e
    if obj is None:
        return DEFAULT_CONFIG
    if not isinstance(obj, dict):
        raise InvalidConfiguration(
            "RB_CONFIG_TOPLEVEL_NOT_OBJECT",
            f"Config file must be a YAML/JSON object, got {type(obj).__name__}",
            details={"path": str(path), "type": type(obj).__name__},
        )
    return merge_config(obj)
