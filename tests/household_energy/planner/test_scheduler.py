from __future__ import annotations

import datetime as dt
from collections.abc import Sequence

import pytest

from household_energy.errors import PlannerConfigError
from household_energy.models.config import PlannerConfig
from household_energy.models.devices import Device
from household_energy.models.weather import WeatherForecast
from household_energy.planner.scheduler import (
    MonthScheduler,
    baseline_proposal,
    cost_strategy,
    eco_strategy,
)

# Monday.
START = dt.date(2026, 10, 19)
GENEROUS = 1_000_000.0


def _make_device(
    device_id: str,
    *,
    hours: float,
    watts: float = 100.0,
    priority: int = 3,
    frequency: str = "daily",
    device_type: str = "other",
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


def _forecast(date: dt.date, avg_temp: float, condition: str) -> WeatherForecast:
    return WeatherForecast(
        date=date,
        temp_min=avg_temp - 4,
        temp_max=avg_temp + 4,
        avg_temp=avg_temp,
        humidity=60,
        weather_code=0,
        condition=condition,
    )


def _first_days(active: Sequence[int], cap: int) -> Sequence[int]:
    return list(active)[:cap]


def test_cost_plan_shape() -> None:
    scheduler = MonthScheduler(cost_strategy(), selector=_first_days)
    plan = scheduler.build_plan(
        devices=[_make_device("fridge", hours=24, priority=5)],
        monthly_budget=3000,
        price_per_kwh=1,
        start_date=START,
    )

    assert plan.plan_type == "cost"
    assert len(plan.days) == 30
    assert [day.day for day in plan.days] == list(range(1, 31))
    assert plan.days[0].date == START
    assert plan.days[-1].date == START + dt.timedelta(days=29)
    assert [day.is_weekend for day in plan.days[:7]] == [False] * 5 + [True, True]
    assert plan.daily_budget == pytest.approx(100)
    assert plan.days[0].budget == pytest.approx(95)
    assert plan.total_cost == pytest.approx(sum(day.total_cost for day in plan.days))
    assert plan.warnings == []


def test_frequency_contract_across_month() -> None:
    devices = [
        _make_device("fridge", hours=24, priority=5),
        _make_device("tv", hours=5, frequency="weekends", device_type="tv"),
        _make_device("washer", hours=2, frequency="rarely", device_type="washing machine"),
    ]
    plan = MonthScheduler(cost_strategy(), selector=_first_days).build_plan(
        devices=devices,
        monthly_budget=GENEROUS,
        price_per_kwh=1,
        start_date=START,
    )

    for day in plan.days:
        hours = day.hours_by_device()
        assert hours["fridge"] > 0
        if not day.is_weekend:
            assert hours.get("tv", 0.0) == 0.0
    washer_days = [day.day for day in plan.days if day.hours_by_device().get("washer", 0) > 0]
    assert washer_days == [1, 2, 3, 8, 9, 10, 15, 16, 17, 22, 23, 24, 29, 30]


def test_weather_excludes_cooling_device() -> None:
    weather = [
        _forecast(START, 15, "rain"),
        _forecast(START + dt.timedelta(days=1), 30, "Clear sky"),
    ]
    plan = MonthScheduler(cost_strategy()).build_plan(
        devices=[
            _make_device("ac", hours=6, watts=1500, priority=5, device_type="air conditioner")
        ],
        monthly_budget=GENEROUS,
        price_per_kwh=1,
        start_date=START,
        weather=weather,
    )

    assert "ac" not in plan.days[0].hours_by_device()
    assert plan.days[0].weather == weather[0]
    assert plan.days[1].hours_by_device()["ac"] == pytest.approx(6.0)
    # Days without weather data are planned without exclusions.
    assert plan.days[2].weather is None
    assert plan.days[2].hours_by_device()["ac"] == pytest.approx(6.0)


def test_proposals_override_baseline_for_covered_days() -> None:
    fan = _make_device("fan", hours=10, watts=75, priority=1, device_type="fan")
    plan = MonthScheduler(cost_strategy()).build_plan(
        devices=[fan],
        monthly_budget=GENEROUS,
        price_per_kwh=1,
        start_date=START,
        proposals=[{"fan": 2.0}, None, {"fan": 0.5}],
    )

    assert plan.days[0].hours_by_device()["fan"] == pytest.approx(2.0)
    assert plan.days[1].hours_by_device()["fan"] == pytest.approx(10.0)
    # Raised to the daily floor of 10h * 1/5 * 0.6.
    assert plan.days[2].hours_by_device()["fan"] == pytest.approx(1.2)


def test_eco_plan_caps_high_emission_devices() -> None:
    devices = [
        _make_device("ac", hours=10, watts=1500, priority=5, device_type="air conditioner"),
        _make_device("laptop", hours=10, watts=60, priority=5, device_type="laptop"),
    ]
    plan = MonthScheduler(eco_strategy()).build_plan(
        devices=devices,
        monthly_budget=GENEROUS,
        price_per_kwh=1,
        start_date=START,
    )

    assert plan.plan_type == "eco"
    assert plan.days[0].budget == pytest.approx(GENEROUS / 30)
    for day in plan.days:
        hours = day.hours_by_device()
        assert hours["ac"] == pytest.approx(3.0)
        # Rating 1 drops 5% of the baseline up front.
        assert hours["laptop"] == pytest.approx(9.5)


def test_budget_is_met_each_day() -> None:
    devices = [
        _make_device("ac", hours=8, watts=1500, priority=4, device_type="air conditioner"),
        _make_device("fan", hours=12, watts=75, priority=2, device_type="fan"),
        _make_device("fridge", hours=24, watts=150, priority=5),
    ]
    plan = MonthScheduler(cost_strategy(), selector=_first_days).build_plan(
        devices=devices,
        monthly_budget=15_000,
        price_per_kwh=50,
        start_date=START,
    )

    for day in plan.days:
        assert day.budget_met
        assert day.total_cost <= day.budget
    assert plan.total_cost <= 15_000 * 0.95 + 1e-6


def test_infeasible_budget_records_warnings() -> None:
    plan = MonthScheduler(cost_strategy()).build_plan(
        devices=[_make_device("fridge", hours=24, watts=150, priority=5)],
        monthly_budget=0,
        price_per_kwh=50,
        start_date=START,
    )

    assert len(plan.warnings) == 30
    assert not any(day.budget_met for day in plan.days)
    assert plan.warnings[0].day == 1
    assert plan.warnings[0].achieved_cost > 0


def test_horizon_follows_config() -> None:
    scheduler = MonthScheduler(cost_strategy(), config=PlannerConfig(horizon_days=7))
    plan = scheduler.build_plan(
        devices=[_make_device("fridge", hours=24)],
        monthly_budget=700,
        price_per_kwh=1,
        start_date=START,
    )
    assert len(plan.days) == 7
    assert plan.daily_budget == pytest.approx(100)


@pytest.mark.parametrize(
    ("devices", "monthly_budget", "price", "match"),
    [
        ([_make_device("a", hours=1)], 100, None, "price_per_kwh"),
        ([_make_device("a", hours=1)], 100, 0, "price_per_kwh"),
        ([], 100, 1, "at least one device"),
        ([_make_device("a", hours=1)], None, 1, "monthly budget"),
    ],
)
def test_configuration_errors(
    devices: list[Device], monthly_budget: float | None, price: float | None, match: str
) -> None:
    scheduler = MonthScheduler(cost_strategy())
    with pytest.raises(PlannerConfigError, match=match):
        scheduler.build_plan(
            devices=devices,
            monthly_budget=monthly_budget,
            price_per_kwh=price,
            start_date=START,
        )


def test_baseline_proposal_emission_reduction() -> None:
    devices = [
        _make_device("heater", hours=10, device_type="water heater"),
        _make_device("tv", hours=10, device_type="tv"),
    ]
    assert baseline_proposal(devices) == {"heater": 10, "tv": 10}
    reduced = baseline_proposal(devices, emission_ratings={"tv": 1})
    assert reduced["heater"] == pytest.approx(7.0)
    assert reduced["tv"] == pytest.approx(9.5)
