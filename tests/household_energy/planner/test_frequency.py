from __future__ import annotations

import datetime as dt
import random
from collections.abc import Sequence

import pytest

from household_energy.models.devices import Device
from household_energy.planner.frequency import FrequencyEnforcer, build_planning_days

# Monday.
START = dt.date(2026, 10, 19)


def _make_device(
    device_id: str,
    *,
    hours: float = 4.0,
    priority: int = 3,
    frequency: str = "daily",
    device_type: str = "other",
    watts: float = 100.0,
) -> Device:
    return Device(
        id=device_id,
        name=device_id.title(),
        type=device_type,
        watts=watts,
        hours_per_day=hours,
        priority=priority,
        frequency=frequency,
    )


def _first_days(active: Sequence[int], cap: int) -> Sequence[int]:
    return list(active)[:cap]


def test_build_planning_days_marks_weekends() -> None:
    days = build_planning_days(START, 7)
    assert [day.day for day in days] == [1, 2, 3, 4, 5, 6, 7]
    assert days[0].date == START
    assert [day.is_weekend for day in days] == [False] * 5 + [True, True]


def test_daily_floor_scales_with_priority() -> None:
    enforcer = FrequencyEnforcer()
    assert enforcer.daily_floor(_make_device("a", hours=10, priority=5)) == pytest.approx(6.0)
    assert enforcer.daily_floor(_make_device("b", hours=10, priority=1)) == pytest.approx(1.2)


def test_daily_device_raised_to_floor() -> None:
    enforcer = FrequencyEnforcer()
    device = _make_device("fridge", hours=10, priority=5)
    hours, floor = enforcer.enforce_device_day(device, 2.0, is_weekend=False)
    assert hours == pytest.approx(6.0)
    assert floor == pytest.approx(6.0)

    hours, _ = enforcer.enforce_device_day(device, 8.0, is_weekend=False)
    assert hours == pytest.approx(8.0)


def test_emission_oriented_caps_high_emission_daily_device() -> None:
    enforcer = FrequencyEnforcer(emission_oriented=True)
    device = _make_device("ac", hours=10, priority=5, device_type="air conditioner")
    hours, floor = enforcer.enforce_device_day(device, 8.0, is_weekend=False)
    assert hours == pytest.approx(3.0)
    assert floor == pytest.approx(3.0)


def test_emission_oriented_leaves_low_emission_daily_device() -> None:
    enforcer = FrequencyEnforcer(emission_oriented=True)
    device = _make_device("fan", hours=10, priority=5, device_type="fan")
    hours, floor = enforcer.enforce_device_day(device, 8.0, is_weekend=False)
    assert hours == pytest.approx(8.0)
    assert floor == pytest.approx(6.0)


def test_proposal_clamped_to_day_length() -> None:
    enforcer = FrequencyEnforcer()
    device = _make_device("pump", hours=1, priority=1, frequency="rarely")
    assert enforcer.enforce_device_day(device, 30.0, is_weekend=False) == (24.0, 0.0)
    assert enforcer.enforce_device_day(device, -3.0, is_weekend=False) == (0.0, 0.0)


def test_weekend_device_hours() -> None:
    device = _make_device("tv", hours=5, priority=2, frequency="weekends", device_type="tv")
    cost = FrequencyEnforcer()
    eco = FrequencyEnforcer(emission_oriented=True)

    assert cost.enforce_device_day(device, 5.0, is_weekend=False) == (0.0, 0.0)
    assert cost.enforce_device_day(device, 5.0, is_weekend=True)[0] == pytest.approx(2.0)
    assert eco.enforce_device_day(device, 5.0, is_weekend=True)[0] == pytest.approx(4.0)

    dryer = _make_device("dryer", hours=2, frequency="weekends", device_type="clothes dryer")
    assert eco.enforce_device_day(dryer, 2.0, is_weekend=True)[0] == pytest.approx(0.6)


def test_weekly_cap_uses_injected_selector() -> None:
    enforcer = FrequencyEnforcer(selector=_first_days)
    device = _make_device("washer", hours=2, frequency="rarely")
    days = build_planning_days(START, 14)
    enforced = enforcer.enforce(days, [device], [{"washer": 2.0}] * 14)

    active = [day.day for day in enforced if day.hours["washer"] > 0]
    assert active == [1, 2, 3, 8, 9, 10]
    assert all(day.floors["washer"] == 0.0 for day in enforced)


def test_frequently_shares_weekly_cap() -> None:
    enforcer = FrequencyEnforcer(selector=_first_days, weekly_active_day_cap=2)
    device = _make_device("iron", hours=1, frequency="frequently")
    days = build_planning_days(START, 7)
    enforced = enforcer.enforce(days, [device], [{"iron": 1.0}] * 7)
    assert [day.day for day in enforced if day.hours["iron"] > 0] == [1, 2]


def test_weekly_cap_with_seeded_rng_is_reproducible() -> None:
    device = _make_device("washer", hours=2, frequency="rarely")
    days = build_planning_days(START, 30)
    proposals = [{"washer": 2.0}] * 30

    def run(seed: int) -> list[int]:
        enforcer = FrequencyEnforcer(rng=random.Random(seed))
        enforced = enforcer.enforce(days, [device], proposals)
        return [day.day for day in enforced if day.hours["washer"] > 0]

    first = run(42)
    assert first == run(42)
    for start in range(1, 31, 7):
        week = [day for day in first if start <= day < start + 7]
        assert len(week) == min(3, len(range(start, min(start + 7, 31))))


def test_weekly_cap_ignores_weeks_under_cap() -> None:
    enforcer = FrequencyEnforcer(selector=_first_days)
    device = _make_device("washer", hours=2, frequency="rarely")
    days = build_planning_days(START, 7)
    proposals = [{"washer": 2.0 if day in (2, 5) else 0.0} for day in range(1, 8)]
    enforced = enforcer.enforce(days, [device], proposals)
    assert [day.day for day in enforced if day.hours["washer"] > 0] == [2, 5]


def test_month_frequency_contract() -> None:
    enforcer = FrequencyEnforcer(rng=random.Random(1))
    fridge = _make_device("fridge", hours=24, priority=5)
    tv = _make_device("tv", hours=5, frequency="weekends")
    days = build_planning_days(START, 30)
    proposals = [{"fridge": 0.0, "tv": 5.0}] * 30
    enforced = enforcer.enforce(days, [fridge, tv], proposals)

    for day in enforced:
        assert day.hours["fridge"] > 0
        if not day.is_weekend:
            assert day.hours["tv"] == 0.0
        else:
            assert day.hours["tv"] > 0


def test_excluded_device_has_no_hours_or_floor() -> None:
    enforcer = FrequencyEnforcer()
    fan = _make_device("fan", hours=8, priority=5, device_type="fan")
    days = build_planning_days(START, 2)
    enforced = enforcer.enforce(
        days, [fan], [{"fan": 8.0}, {"fan": 8.0}], [frozenset({"fan"}), frozenset()]
    )
    assert enforced[0].hours["fan"] == 0.0
    assert enforced[0].floors["fan"] == 0.0
    assert enforced[1].hours["fan"] == pytest.approx(8.0)


def test_proposal_length_must_match_days() -> None:
    enforcer = FrequencyEnforcer()
    with pytest.raises(ValueError, match="proposals length"):
        enforcer.enforce(build_planning_days(START, 3), [], [{}])
