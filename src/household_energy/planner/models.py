from __future__ import annotations

import datetime as dt
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict
from pydantic.functional_serializers import PlainSerializer

from household_energy.models.weather import WeatherForecast

Rounded1 = Annotated[
    float,
    PlainSerializer(lambda v: round(v, 1), return_type=float, when_used="json"),
]
Rounded2 = Annotated[
    float,
    PlainSerializer(lambda v: round(v, 2), return_type=float, when_used="json"),
]
Rounded3 = Annotated[
    float,
    PlainSerializer(lambda v: round(v, 3), return_type=float, when_used="json"),
]

PlanType = Literal["cost", "eco", "balance"]


def energy_kwh(watts: float, hours: float) -> float:
    return (watts / 1000.0) * hours


def energy_cost(watts: float, hours: float, price_per_kwh: float) -> float:
    return energy_kwh(watts, hours) * price_per_kwh


class DeviceAllocation(BaseModel):
    device_id: str
    name: str
    watts: float
    priority: int
    hours: Rounded1
    cost: Rounded2
    energy_kwh: Rounded3

    model_config = ConfigDict(extra="forbid", frozen=True)


class PlanWarning(BaseModel):
    day: int
    budget: Rounded2
    achieved_cost: Rounded2
    message: str

    model_config = ConfigDict(extra="forbid", frozen=True)


class DaySchedule(BaseModel):
    day: int
    date: dt.date
    is_weekend: bool
    allocations: list[DeviceAllocation]
    total_cost: Rounded2
    total_energy_kwh: Rounded3
    budget: Rounded2
    budget_met: bool
    weather: WeatherForecast | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    def hours_by_device(self) -> dict[str, float]:
        return {item.device_id: item.hours for item in self.allocations}

    @property
    def total_hours(self) -> float:
        return sum(item.hours for item in self.allocations)


class MonthPlan(BaseModel):
    plan_type: PlanType
    days: list[DaySchedule]
    total_cost: Rounded2
    total_energy_kwh: Rounded3
    monthly_budget: Rounded2
    daily_budget: Rounded2
    price_per_kwh: float
    warnings: list[PlanWarning] = []

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def total_hours(self) -> float:
        return sum(day.total_hours for day in self.days)

    @property
    def device_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for day in self.days:
            for item in day.allocations:
                seen.setdefault(item.device_id, None)
        return list(seen)
