from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from household_energy.models.devices import Device, assign_device_ids


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 6070
    data_dir: Path = Field(default_factory=lambda: Path.cwd() / "data")

    model_config = ConfigDict(extra="forbid")


class BudgetConfig(BaseModel):
    # Missing values are reported when a plan that needs them is requested.
    price_per_kwh: float | None = Field(default=None, gt=0)
    preferred_budget: float | None = Field(default=None, ge=0)
    average_monthly_cost: float | None = Field(default=None, ge=0)
    currency_symbol: str = "₦"

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class StepBand(BaseModel):
    above_hours: float = Field(ge=0)
    step_hours: float = Field(gt=0)

    model_config = ConfigDict(extra="forbid")


def _default_step_bands() -> list[StepBand]:
    return [
        StepBand(above_hours=8.0, step_hours=0.5),
        StepBand(above_hours=4.0, step_hours=0.3),
        StepBand(above_hours=2.0, step_hours=0.2),
        StepBand(above_hours=0.5, step_hours=0.1),
    ]


def _default_priority_step_weights() -> dict[int, float]:
    return {1: 1.0, 2: 0.875, 3: 0.75, 4: 0.625, 5: 0.5}


class TrimmerConfig(BaseModel):
    max_iterations: int = Field(default=100, ge=1)
    max_strict_iterations: int = Field(default=50, ge=0)
    strict_step_hours: float = Field(default=0.1, gt=0)
    step_bands: list[StepBand] = Field(default_factory=_default_step_bands)
    # Multiplies the band step so higher priorities shed hours more slowly.
    priority_step_weights: dict[int, float] = Field(default_factory=_default_priority_step_weights)

    model_config = ConfigDict(extra="forbid")

    @field_validator("step_bands")
    @classmethod
    def _sort_step_bands(cls, value: list[StepBand]) -> list[StepBand]:
        if not value:
            raise ValueError("step_bands must not be empty")
        return sorted(value, key=lambda band: band.above_hours, reverse=True)

    @field_validator("priority_step_weights")
    @classmethod
    def _validate_priority_step_weights(cls, value: dict[int, float]) -> dict[int, float]:
        missing = {1, 2, 3, 4, 5} - set(value)
        if missing:
            raise ValueError(f"priority_step_weights missing priorities {sorted(missing)}")
        for priority, weight in value.items():
            if not 0 < weight <= 1:
                raise ValueError(f"priority_step_weights[{priority}] must be in (0, 1]")
        return value


def _lowercase_keywords(value: object) -> object:
    if isinstance(value, list):
        return [item.strip().lower() if isinstance(item, str) else item for item in value]
    return value


class WeatherFilterConfig(BaseModel):
    cooling_min_temp_c: float = 20.0
    heating_max_temp_c: float = 25.0
    cooling_exclusion_conditions: list[str] = Field(
        default_factory=lambda: ["rain", "storm", "overcast", "drizzle", "shower", "snow", "cold"]
    )
    heating_exclusion_conditions: list[str] = Field(
        default_factory=lambda: ["hot", "heat", "sunny", "warm"]
    )
    # Only exclude heating on these conditions once it is warm enough to need cooling.
    warm_clear_conditions: list[str] = Field(default_factory=lambda: ["clear"])

    model_config = ConfigDict(extra="forbid")

    @field_validator(
        "cooling_exclusion_conditions",
        "heating_exclusion_conditions",
        "warm_clear_conditions",
        mode="before",
    )
    @classmethod
    def _normalize_keywords(cls, value: object) -> object:
        return _lowercase_keywords(value)


class PlannerConfig(BaseModel):
    horizon_days: int = Field(default=30, ge=1, le=366)
    week_length_days: int = Field(default=7, ge=1)
    weekly_active_day_cap: int = Field(default=3, ge=0)
    cost_budget_headroom: float = Field(default=0.95, gt=0, le=1)
    random_seed: int | None = None
    trimmer: TrimmerConfig = Field(default_factory=TrimmerConfig)
    weather_filter: WeatherFilterConfig = Field(default_factory=WeatherFilterConfig)

    model_config = ConfigDict(extra="forbid")


class LocationConfig(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    model_config = ConfigDict(extra="forbid")


class WeatherServiceConfig(BaseModel):
    base_url: str = "https://api.open-meteo.com/v1"
    forecast_days: int = Field(default=16, ge=1, le=16)
    timeout_seconds: float = Field(default=10.0, gt=0)
    # Fail the run instead of estimating from seasonal averages when the live fetch fails.
    require_live_weather: bool = False

    model_config = ConfigDict(extra="forbid")


class TextGenerationConfig(BaseModel):
    base_url: str = Field(min_length=1)
    token: str | None = None
    model: str | None = None
    timeout_seconds: float = Field(default=60.0, gt=0)

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    planner: PlannerConfig = Field(default_factory=PlannerConfig)
    location: LocationConfig | None = None
    weather: WeatherServiceConfig = Field(default_factory=WeatherServiceConfig)
    text_generation: TextGenerationConfig | None = None
    devices: list[Device] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @field_validator("devices", mode="before")
    @classmethod
    def _assign_device_ids(cls, value: Any) -> Any:
        if isinstance(value, list):
            return assign_device_ids(value)
        return value

    @model_validator(mode="after")
    def _validate_device_ids_unique(self) -> AppConfig:
        ids = [device.id for device in self.devices]
        if len(ids) != len(set(ids)):
            raise ValueError("device ids must be unique")
        return self
