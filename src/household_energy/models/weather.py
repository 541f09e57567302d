from __future__ import annotations

import datetime as dt
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict


class WeatherForecast(BaseModel):
    date: dt.date
    temp_min: float
    temp_max: float
    avg_temp: float
    humidity: float
    weather_code: int
    condition: str
    is_estimated: bool = False

    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True, slots=True)
class WeatherDay:
    day: int
    temperature: float
    condition: str

    @classmethod
    def from_forecast(cls, day: int, forecast: WeatherForecast) -> WeatherDay:
        return cls(day=day, temperature=forecast.avg_temp, condition=forecast.condition)
