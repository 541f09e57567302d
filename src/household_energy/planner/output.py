from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from household_energy.models.devices import Device
from household_energy.planner.models import DaySchedule, MonthPlan, PlanType

PriorityLabel = Literal["high", "medium", "low"]

INITIAL_ECO_SCORE = 50

_PLAN_TITLES: dict[PlanType, tuple[str, str]] = {
    "cost": (
        "Cost Saver Plan",
        "Optimized plan to reduce energy costs while maintaining essential device usage",
    ),
    "eco": (
        "Eco Mode Plan",
        "Reduces emission by reducing use time of highly emissive devices while staying in budget",
    ),
    "balance": (
        "Comfort Balance Plan",
        "Balanced plan optimizing between cost savings and comfort",
    ),
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class WeatherSummary(_CamelModel):
    condition: str
    temperature: float
    humidity: float | None = None
    weather_code: int | None = None


class DeviceScheduleOut(_CamelModel):
    device_id: str
    device_name: str
    hours_of_use: float
    priority: PriorityLabel
    estimated_cost: float


class DailyScheduleOut(_CamelModel):
    date: dt.date
    day_number: int
    day_name: str
    is_weekend: bool
    is_estimated_weather: bool
    weather: WeatherSummary | None
    total_usage_hours: float
    estimated_cost: float
    budget_met: bool
    device_schedules: list[DeviceScheduleOut]


class WarningOut(_CamelModel):
    day_number: int
    budget: float
    achieved_cost: float
    message: str


class PersistedPlan(_CamelModel):
    id: str
    type: PlanType
    name: str
    description: str
    metrics: dict[str, float]
    daily_schedules: list[DailyScheduleOut]
    devices: list[str]
    warnings: list[WarningOut]

    def to_json_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)


def priority_label(priority: int) -> PriorityLabel:
    if priority >= 4:
        return "high"
    if priority == 3:
        return "medium"
    return "low"


def cost_metrics(plan: MonthPlan) -> dict[str, float]:
    return {
        "initialBudget": round(plan.monthly_budget, 2),
        "optimizedBudget": round(plan.total_cost, 2),
        "monthlySaving": round(plan.monthly_budget - plan.total_cost, 2),
    }


def eco_metrics(plan: MonthPlan, devices: Sequence[Device]) -> dict[str, float]:
    baseline_hours = sum(device.hours_per_day for device in devices) * len(plan.days)
    gain = _relative_change_pct(plan.total_hours, baseline_hours)
    return {
        "initialEcoScore": INITIAL_ECO_SCORE,
        "optimizedEcoScore": min(100, INITIAL_ECO_SCORE + gain),
        "ecoImprovementPercentage": gain,
        "monthlyCostCap": round(plan.total_cost, 2),
    }


def balance_metrics(
    plan: MonthPlan,
    *,
    eco_plan: MonthPlan,
    average_monthly_cost: float | None,
) -> dict[str, float]:
    reduction = 0
    if average_monthly_cost:
        reduction = round((average_monthly_cost - plan.total_cost) / average_monthly_cost * 100)
    return {
        "budgetReductionPercentage": reduction,
        "ecoFriendlyGainPercentage": _relative_change_pct(plan.total_hours, eco_plan.total_hours),
        "optimizedBudget": round(plan.total_cost, 2),
    }


def to_persisted_plan(
    plan: MonthPlan,
    metrics: dict[str, float],
    *,
    generated_at: dt.datetime | None = None,
) -> PersistedPlan:
    generated_at = generated_at or dt.datetime.now(dt.UTC)
    name, description = _PLAN_TITLES[plan.plan_type]
    return PersistedPlan(
        id=f"{plan.plan_type}-plan-{int(generated_at.timestamp() * 1000)}",
        type=plan.plan_type,
        name=name,
        description=description,
        metrics=metrics,
        daily_schedules=[_day_out(day) for day in plan.days],
        devices=plan.device_ids,
        warnings=[
            WarningOut(
                day_number=warning.day,
                budget=round(warning.budget, 2),
                achieved_cost=round(warning.achieved_cost, 2),
                message=warning.message,
            )
            for warning in plan.warnings
        ],
    )


def _day_out(day: DaySchedule) -> DailyScheduleOut:
    weather = None
    if day.weather is not None:
        weather = WeatherSummary(
            condition=day.weather.condition,
            temperature=day.weather.avg_temp,
            humidity=day.weather.humidity,
            weather_code=day.weather.weather_code,
        )
    return DailyScheduleOut(
        date=day.date,
        day_number=day.day,
        day_name=day.date.strftime("%A"),
        is_weekend=day.is_weekend,
        is_estimated_weather=day.weather is None or day.weather.is_estimated,
        weather=weather,
        total_usage_hours=round(day.total_hours, 1),
        estimated_cost=round(day.total_cost, 2),
        budget_met=day.budget_met,
        device_schedules=[
            DeviceScheduleOut(
                device_id=item.device_id,
                device_name=item.name,
                hours_of_use=round(item.hours, 1),
                priority=priority_label(item.priority),
                estimated_cost=round(item.cost, 2),
            )
            for item in day.allocations
        ],
    )


def _relative_change_pct(value: float, reference: float) -> int:
    if reference <= 0:
        return 0
    return round(abs(value - reference) / reference * 100)
