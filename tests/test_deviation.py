from datetime import datetime, timedelta
from rollbudget.compensation import calculate_weighted_deviation
from rollbudget.config import merge_config
from rollbudget.types import IntakeEvent

NOW = datetime(2025, 1, 5, 18, 0, 0)


def ev(hours_ago: float, value: float) -> IntakeEvent:
    return IntakeEvent(NOW - timedelta(hours=hours_ago), value)


def test_default_window_has_sixteen_periods_newest_first():
    a = calculate_weighted_deviation([], NOW, merge_config({}))
    assert len(a.periods) == 16
    assert [p.hours_ago for p in a.periods[:3]] == [0, 6, 12]
    assert a.periods[0].period_end == NOW
    assert a.periods[-1].period_start == NOW - timedelta(hours=96)
    assert a.periods[1].weight == 0.85


def test_last_period_truncated():
    cfg = merge_config({"compensation": {"window_hours": 10}})
    a = calculate_weighted_deviation([], NOW, cfg)
    assert len(a.periods) == 2
    short = a.periods[1]
    assert short.period_start == NOW - timedelta(hours=10)
    assert abs(short.expected_amount - 2000 / 24 * 4) < 1e-9
    assert abs(a.total_weight - 1.85) < 1e-12


def test_period_deviation_and_weighting():
    cfg = merge_config({"compensation": {"window_hours": 12, "decay_factor": 0.5}})
    a = calculate_weighted_deviation([ev(1, 800), ev(7, 200)], NOW, cfg)
    p0, p1 = a.periods
    assert p0.consumed_amount == 800
    assert abs(p0.deviation - 300) < 1e-9
    assert abs(p1.deviation - (-300)) < 1e-9
    assert abs(p1.weighted_deviation - (-150)) < 1e-9
    assert abs(a.weighted_deviation - 150) < 1e-9


def test_uniform_consumption_has_no_deviation():
    cfg = merge_config({})
    events = [ev(h, 2000 / 24) for h in range(96)]
    a = calculate_weighted_deviation(events, NOW, cfg)
    assert all(abs(p.deviation) < 1e-6 for p in a.periods)
    assert abs(a.weighted_deviation) < 1e-6
