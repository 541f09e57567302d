"""Monthly climate averages used to estimate weather past the forecast horizon."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import StrEnum

from household_energy.models.weather import WeatherForecast


class ClimateZone(StrEnum):
    TROPICAL = "tropical"
    ARID = "arid"
    TEMPERATE = "temperate"
    CONTINENTAL = "continental"
    POLAR = "polar"


@dataclass(frozen=True, slots=True)
class SeasonalAverage:
    temp_min: float
    temp_max: float
    avg_temp: float
    humidity: float
    weather_code: int
    condition: str


def _s(
    temp_min: float, temp_max: float, avg: float, humidity: float, code: int, condition: str
) -> SeasonalAverage:
    return SeasonalAverage(temp_min, temp_max, avg, humidity, code, condition)


# Indexed by calendar month, January first.
CLIMATE_AVERAGES: dict[ClimateZone, tuple[SeasonalAverage, ...]] = {
    ClimateZone.TROPICAL: (
        _s(22, 31, 27, 75, 2, "Partly cloudy"),
        _s(23, 32, 28, 75, 2, "Partly cloudy"),
        _s(24, 33, 29, 75, 2, "Partly cloudy"),
        _s(24, 32, 28, 78, 61, "Light rain"),
        _s(24, 31, 28, 80, 63, "Rain"),
        _s(23, 30, 27, 82, 63, "Rain"),
        _s(22, 29, 26, 82, 63, "Rain"),
        _s(22, 29, 26, 82, 63, "Rain"),
        _s(23, 30, 27, 80, 61, "Light rain"),
        _s(23, 31, 27, 78, 2, "Partly cloudy"),
        _s(23, 31, 27, 77, 2, "Partly cloudy"),
        _s(22, 31, 27, 76, 2, "Partly cloudy"),
    ),
    ClimateZone.ARID: (
        _s(10, 22, 16, 40, 0, "Clear sky"),
        _s(12, 24, 18, 38, 0, "Clear sky"),
        _s(15, 28, 22, 35, 0, "Clear sky"),
        _s(18, 32, 25, 32, 1, "Mainly clear"),
        _s(22, 37, 30, 28, 0, "Clear sky"),
        _s(25, 41, 33, 25, 0, "Clear sky"),
        _s(27, 43, 35, 23, 0, "Clear sky"),
        _s(26, 42, 34, 24, 0, "Clear sky"),
        _s(23, 38, 31, 27, 0, "Clear sky"),
        _s(19, 33, 26, 30, 1, "Mainly clear"),
        _s(14, 27, 21, 35, 0, "Clear sky"),
        _s(11, 23, 17, 38, 0, "Clear sky"),
    ),
    ClimateZone.TEMPERATE: (
        _s(2, 10, 6, 75, 3, "Overcast"),
        _s(2, 11, 7, 72, 2, "Partly cloudy"),
        _s(5, 14, 10, 68, 2, "Partly cloudy"),
        _s(8, 18, 13, 65, 61, "Light rain"),
        _s(12, 22, 17, 63, 2, "Partly cloudy"),
        _s(16, 26, 21, 60, 1, "Mainly clear"),
        _s(18, 28, 23, 58, 0, "Clear sky"),
        _s(18, 28, 23, 58, 0, "Clear sky"),
        _s(15, 24, 20, 62, 1, "Mainly clear"),
        _s(11, 19, 15, 68, 2, "Partly cloudy"),
        _s(6, 14, 10, 73, 3, "Overcast"),
        _s(3, 11, 7, 76, 3, "Overcast"),
    ),
    ClimateZone.CONTINENTAL: (
        _s(-10, -2, -6, 70, 71, "Light snow"),
        _s(-8, 0, -4, 68, 71, "Light snow"),
        _s(-3, 5, 1, 65, 2, "Partly cloudy"),
        _s(3, 13, 8, 60, 61, "Light rain"),
        _s(10, 20, 15, 58, 2, "Partly cloudy"),
        _s(15, 25, 20, 60, 1, "Mainly clear"),
        _s(18, 28, 23, 62, 0, "Clear sky"),
        _s(17, 27, 22, 63, 1, "Mainly clear"),
        _s(12, 22, 17, 65, 2, "Partly cloudy"),
        _s(5, 14, 10, 68, 61, "Light rain"),
        _s(-2, 6, 2, 72, 3, "Overcast"),
        _s(-8, 0, -4, 73, 71, "Light snow"),
    ),
    ClimateZone.POLAR: (
        _s(-15, -8, -12, 75, 73, "Snow"),
        _s(-16, -9, -13, 74, 73, "Snow"),
        _s(-12, -5, -9, 72, 71, "Light snow"),
        _s(-6, 1, -3, 70, 71, "Light snow"),
        _s(0, 7, 4, 68, 2, "Partly cloudy"),
        _s(5, 12, 9, 65, 1, "Mainly clear"),
        _s(8, 15, 12, 63, 0, "Clear sky"),
        _s(7, 14, 11, 64, 1, "Mainly clear"),
        _s(3, 9, 6, 67, 2, "Partly cloudy"),
        _s(-3, 3, 0, 71, 71, "Light snow"),
        _s(-9, -3, -6, 74, 71, "Light snow"),
        _s(-14, -7, -11, 76, 73, "Snow"),
    ),
}


def detect_climate_zone(latitude: float, avg_temp: float | None = None) -> ClimateZone:
    """Pick a zone from latitude, refined by the observed mean temperature when known."""
    abs_lat = abs(latitude)
    if abs_lat > 60:
        return ClimateZone.POLAR
    if abs_lat > 40 and (avg_temp is None or avg_temp < 15):
        return ClimateZone.CONTINENTAL
    if abs_lat < 23.5 and (avg_temp is None or avg_temp > 20):
        return ClimateZone.TROPICAL
    if avg_temp is not None and avg_temp > 25:
        return ClimateZone.ARID
    return ClimateZone.TEMPERATE


def seasonal_average(date: dt.date, zone: ClimateZone) -> SeasonalAverage:
    return CLIMATE_AVERAGES[zone][date.month - 1]


def seasonal_forecasts(start: dt.date, num_days: int, zone: ClimateZone) -> list[WeatherForecast]:
    forecasts: list[WeatherForecast] = []
    for offset in range(num_days):
        current = start + dt.timedelta(days=offset)
        average = seasonal_average(current, zone)
        forecasts.append(
            WeatherForecast(
                date=current,
                temp_min=average.temp_min,
                temp_max=average.temp_max,
                avg_temp=average.avg_temp,
                humidity=average.humidity,
                weather_code=average.weather_code,
                condition=average.condition,
                is_estimated=True,
            )
        )
    return forecasts
