from datetime import datetime, timedelta
from rollbudget.config import DEFAULT_CONFIG, merge_config
from rollbudget.recommend import calculate_event_size, get_recommendation
from rollbudget.types import IntakeEvent

NOW = datetime(2025, 1, 3, 12, 0, 0)
NO_COMPENSATION = {"compensation": {"strength": 0.0}}


def ev(hours_ago: float, value: float) -> IntakeEvent:
    return IntakeEvent(NOW - timedelta(hours=hours_ago), value)


def test_empty_events():
    rec = get_recommendation([], NOW)
    assert rec.consumed_last_24h == 0
    assert rec.remaining_last_24h == rec.effective_target == 2000
    assert rec.hours_since_last_event is None
    assert rec.last_event_time is None
    assert rec.wait_until is None
    assert rec.compensation.is_active is False
    assert rec.percent_used == 0
    assert (round(rec.recommended_min), round(rec.recommended_max)) == (385, 715)
    assert rec.reasoning == "0% of 24h budget used. 2000 kcal available for ~4 more event(s)."


def test_consumed_and_remaining_scenario():
    rec = get_recommendation([ev(0, 100), ev(5, 700)], NOW, NO_COMPENSATION)
    assert rec.consumed_last_24h == 800
    assert rec.remaining_last_24h == 1200
    assert rec.base_target == 2000
    assert abs(rec.percent_used - 40.0) < 1e-9


def test_remaining_uses_compensated_target():
    rec = get_recommendation([ev(0, 100), ev(5, 700)], NOW)
    assert rec.consumed_last_24h == 800
    assert rec.remaining_last_24h == rec.effective_target - 800


def test_target_reached_range_is_zero():
    lo, hi, reasoning = calculate_event_size(30, 1970, 2000, DEFAULT_CONFIG)
    assert (lo, hi) == (0, 0)
    assert "reached your 24h target" in reasoning


def test_limited_remaining_offers_small_amount():
    lo, hi, reasoning = calculate_event_size(60, 1940, 2000, DEFAULT_CONFIG)
    assert (lo, hi) == (0, 60)
    assert reasoning.startswith("Limited budget remaining (60 kcal)")


def test_range_within_configured_sizes():
    cfg = merge_config({"min_event_size": 200, "max_event_size": 400})
    lo, hi, _ = calculate_event_size(1800, 200, 2000, cfg)
    assert 200 <= lo <= hi <= 400


def test_wait_until_when_last_event_too_recent():
    rec = get_recommendation([ev(1, 300)], NOW)
    assert rec.last_event_time == NOW - timedelta(hours=1)
    assert rec.wait_until == NOW + timedelta(hours=1)
    assert rec.hours_since_last_event == 1.0


def test_no_wait_after_min_interval():
    rec = get_recommendation([ev(3, 300)], NOW)
    assert rec.wait_until is None


def test_partial_override_keeps_nested_defaults():
    rec = get_recommendation([ev(1, 5000)], NOW, NO_COMPENSATION)
    assert rec.effective_target == 2000
    assert rec.remaining_last_24h == 0
    assert (rec.recommended_min, rec.recommended_max) == (0, 0)


def test_idempotent():
    events = [ev(0.5, 300), ev(4, 650), ev(30, 900), ev(50, 1200)]
    assert get_recommendation(events, NOW) == get_recommendation(events, NOW)


def test_monotonic_in_event_value():
    prev = None
    for value in (100, 400, 900, 1600, 3000):
        rec = get_recommendation([ev(10, 500), ev(2, value)], NOW)
        assert 0 <= rec.remaining_last_24h <= rec.effective_target
        if prev is not None:
            assert rec.consumed_last_24h >= prev.consumed_last_24h
            assert rec.remaining_last_24h <= prev.remaining_last_24h
        prev = rec
