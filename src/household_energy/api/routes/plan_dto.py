from __future__ import annotations

import datetime as dt
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, field_validator

from household_energy.models.config import BudgetConfig
from household_energy.models.devices import Device, assign_device_ids
from household_energy.planner.classifier import (
    DeviceClassification,
    EmissionLevel,
    WeatherSensitivity,
)
from household_energy.worker import PlanningResult, PlanRunState


class PlanRunRequestDto(BaseModel):
    devices: list[Device] | None = None
    budget: BudgetConfig | None = None
    start_date: dt.date | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("devices", mode="before")
    @classmethod
    def _assign_device_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return assign_device_ids(value)
        return value


class PlanRunStateDto(BaseModel):
    run_id: str
    status: Literal["running", "completed", "failed"]
    accepted_at: dt.datetime
    started_at: dt.datetime | None = None
    finished_at: dt.datetime | None = None
    message: str | None = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_run(cls, run: PlanRunState) -> PlanRunStateDto:
        return cls(
            run_id=run.run_id,
            status=run.status,
            accepted_at=run.accepted_at,
            started_at=run.started_at,
            finished_at=run.finished_at,
            message=run.message,
        )


class PlanSummaryDto(BaseModel):
    type: str
    total_cost: float
    total_energy_kwh: float
    monthly_budget: float
    over_budget_days: list[int]

    model_config = ConfigDict(extra="forbid")


class PlanRunResponseDto(BaseModel):
    run: PlanRunStateDto
    start_date: dt.date
    summaries: list[PlanSummaryDto]
    plans: list[dict[str, Any]]

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_result(cls, run: PlanRunState, result: PlanningResult) -> PlanRunResponseDto:
        return cls(
            run=PlanRunStateDto.from_run(run),
            start_date=result.start_date,
            summaries=[
                PlanSummaryDto(
                    type=plan.plan_type,
                    total_cost=round(plan.total_cost, 2),
                    total_energy_kwh=round(plan.total_energy_kwh, 3),
                    monthly_budget=round(plan.monthly_budget, 2),
                    over_budget_days=[warning.day for warning in plan.warnings],
                )
                for plan in result.plans()
            ],
            plans=[plan.to_json_dict() for plan in result.persisted],
        )


class DeviceDto(BaseModel):
    id: str
    name: str
    type: str
    watts: float
    hours_per_day: float
    priority: int
    frequency: str
    weather_sensitivity: WeatherSensitivity
    emission_level: EmissionLevel
    emission_rating: int

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_device(cls, device: Device, labels: DeviceClassification) -> DeviceDto:
        return cls(
            id=device.id,
            name=device.name,
            type=device.type,
            watts=device.watts,
            hours_per_day=device.hours_per_day,
            priority=device.priority,
            frequency=device.frequency,
            weather_sensitivity=labels.weather_sensitivity,
            emission_level=labels.emission_level,
            emission_rating=labels.emission_rating,
        )
