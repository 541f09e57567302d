from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Sequence
from typing import Any, cast

import httpx

from household_energy.lib.seasonal_climate import detect_climate_zone, seasonal_forecasts
from household_energy.models.config import LocationConfig, WeatherServiceConfig
from household_energy.models.weather import WeatherForecast

logger = logging.getLogger(__name__)

WMO_CONDITIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Foggy",
    51: "Light drizzle",
    53: "Drizzle",
    55: "Heavy drizzle",
    61: "Light rain",
    63: "Rain",
    65: "Heavy rain",
    71: "Light snow",
    73: "Snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Light showers",
    81: "Showers",
    82: "Heavy showers",
    85: "Light snow showers",
    86: "Snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with hail",
    99: "Thunderstorm with hail",
}

_DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,weather_code,relative_humidity_2m_mean"


def describe_weather_code(code: int) -> str:
    return WMO_CONDITIONS.get(code, "Unknown")


class OpenMeteoClient:
    """Daily forecasts from Open-Meteo (no API key required)."""

    def __init__(
        self,
        *,
        config: WeatherServiceConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or WeatherServiceConfig()
        self._transport = transport

    async def fetch_daily_forecast(
        self,
        location: LocationConfig,
        *,
        days: int | None = None,
    ) -> list[WeatherForecast]:
        """Return up to ``forecast_days`` real forecasts, or [] when the call fails."""
        url = f"{self._config.base_url.rstrip('/')}/forecast"
        params: dict[str, str | int | float] = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "daily": _DAILY_FIELDS,
            "temperature_unit": "celsius",
            "timezone": "auto",
            "forecast_days": min(days or self._config.forecast_days, self._config.forecast_days),
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                payload: Any = response.json()
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch forecast from Open-Meteo: %s", exc)
            return []
        except ValueError as exc:
            logger.error("Open-Meteo returned invalid JSON: %s", exc)
            return []

        try:
            return _parse_daily(payload)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("Unexpected forecast payload from Open-Meteo: %s", exc)
            return []


def _parse_daily(payload: Any) -> list[WeatherForecast]:
    if not isinstance(payload, dict):
        raise TypeError(f"expected object, got {type(payload).__name__}")
    daily = cast(dict[str, list[Any]], payload["daily"])
    forecasts: list[WeatherForecast] = []
    for idx, day in enumerate(daily["time"]):
        values = [
            daily[key][idx]
            for key in (
                "temperature_2m_min",
                "temperature_2m_max",
                "weather_code",
                "relative_humidity_2m_mean",
            )
        ]
        if any(value is None for value in values):
            logger.warning("Open-Meteo returned incomplete data for %s; skipping day", day)
            continue
        temp_min, temp_max = float(values[0]), float(values[1])
        code = int(values[2])
        forecasts.append(
            WeatherForecast(
                date=dt.date.fromisoformat(day),
                temp_min=round(temp_min),
                temp_max=round(temp_max),
                avg_temp=round((temp_min + temp_max) / 2),
                humidity=round(float(values[3])),
                weather_code=code,
                condition=describe_weather_code(code),
            )
        )
    return forecasts


def fill_with_seasonal(
    forecasts: Sequence[WeatherForecast],
    *,
    start: dt.date,
    num_days: int,
    latitude: float,
) -> list[WeatherForecast]:
    """Align real forecasts to the planning days and estimate the rest.

    The climate zone is picked from latitude and the mean temperature of the
    real forecasts that were available.
    """
    by_date = {forecast.date: forecast for forecast in forecasts}
    mean_temp = (
        sum(forecast.avg_temp for forecast in forecasts) / len(forecasts) if forecasts else None
    )
    zone = detect_climate_zone(latitude, mean_temp)
    estimates = seasonal_forecasts(start, num_days, zone)

    filled: list[WeatherForecast] = []
    for estimate in estimates:
        filled.append(by_date.get(estimate.date, estimate))
    estimated = sum(1 for forecast in filled if forecast.is_estimated)
    if estimated:
        logger.info(
            "Using %s seasonal averages for %d of %d days", zone.value, estimated, num_days
        )
    return filled
