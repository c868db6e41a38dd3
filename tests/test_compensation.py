from datetime import datetime, timedelta
import pytest
from rollbudget.compensation import get_compensated_target, round_half_up
from rollbudget.config import DEFAULT_CONFIG, merge_config
from rollbudget.types import IntakeEvent

NOW = datetime(2025, 1, 5, 18, 0, 0)
BASE = DEFAULT_CONFIG.target_daily_amount


def ev(hours_ago: float, value: float) -> IntakeEvent:
    return IntakeEvent(NOW - timedelta(hours=hours_ago), value)


def on_rate_history():
    return [ev(h, BASE / 24) for h in range(96)]


def test_empty_history_keeps_base_target():
    r = get_compensated_target([], NOW, DEFAULT_CONFIG)
    assert r.adjusted_target == BASE
    assert r.compensation_amount == 0
    assert r.is_active is False
    assert r.reason == "On track with your targets."


def test_on_rate_history_is_on_track():
    r = get_compensated_target(on_rate_history(), NOW, DEFAULT_CONFIG)
    assert r.raw_deviation == 0
    assert r.is_active is False
    assert r.adjusted_target == BASE


def test_small_adjustment_applied_but_reported_inactive():
    events = on_rate_history() + [ev(0.5, 20)]
    r = get_compensated_target(events, NOW, DEFAULT_CONFIG)
    assert r.is_active is False
    assert r.adjusted_target == BASE - 1
    assert "On track" in r.reason


def test_recent_overconsumption_reduces_target():
    r = get_compensated_target([ev(1, 5000)], NOW, DEFAULT_CONFIG)
    assert r.is_active
    assert r.adjusted_target == 1938
    assert r.compensation_amount == -62
    assert "reduced by 62 kcal" in r.reason


def test_reduction_capped_at_thirty_percent():
    cfg = merge_config({"compensation": {"strength": 1.0}})
    r = get_compensated_target([ev(1, 1_000_000)], NOW, cfg)
    assert r.adjusted_target == 1400
    assert r.compensation_amount == -600


def test_increase_capped_at_fifteen_percent():
    cfg = merge_config({"compensation": {"strength": 1.0}})
    r = get_compensated_target([ev(95, 1)], NOW, cfg)
    assert r.adjusted_target == 2300
    assert "increased by 300 kcal" in r.reason


def test_adjusted_target_stays_in_bounds():
    cfg = merge_config({"target_daily_amount": 1500, "compensation": {"strength": 1.0, "decay_factor": 1.0}})
    for value in (0.01, 10, 1500, 1e9):
        r = get_compensated_target([ev(3, value)], NOW, cfg)
        assert 0.6 * 1500 <= r.adjusted_target <= 1.2 * 1500


@pytest.mark.parametrize("base", [0.5, 3, 7.5])
def test_small_targets_stay_in_unrounded_bounds(base):
    cfg = merge_config({"target_daily_amount": base})
    for events in ([ev(1, 100)], [ev(95, 0.001)], []):
        r = get_compensated_target(events, NOW, cfg)
        assert base * 0.6 <= r.adjusted_target <= base * 1.2


def test_no_history_target_rounded_like_adjusted_path():
    cfg = merge_config({"target_daily_amount": 1999.6})
    assert get_compensated_target([], NOW, cfg).adjusted_target == 2000


def test_unit_label_in_reason():
    cfg = merge_config({"unit_label": "g"})
    r = get_compensated_target([ev(1, 5000)], NOW, cfg)
    assert r.reason.endswith(" g.")


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.49) == 0
