from __future__ import annotations

from collections.abc import Iterable, Mapping

from household_energy.models.config import WeatherFilterConfig
from household_energy.models.weather import WeatherDay
from household_energy.planner.classifier import WeatherSensitivity


class WeatherExclusionFilter:
    """Decide which weather-sensitive devices are unusable on a given day."""

    def __init__(self, config: WeatherFilterConfig | None = None) -> None:
        self._config = config or WeatherFilterConfig()

    def excluded(
        self,
        weather: WeatherDay,
        sensitivities: Mapping[str, WeatherSensitivity],
    ) -> frozenset[str]:
        return frozenset(
            device_id
            for device_id, sensitivity in sensitivities.items()
            if self.is_excluded(weather, sensitivity)
        )

    def is_excluded(self, weather: WeatherDay, sensitivity: WeatherSensitivity) -> bool:
        if sensitivity == "cooling":
            return self._cooling_excluded(weather)
        if sensitivity == "heating":
            return self._heating_excluded(weather)
        return False

    def _cooling_excluded(self, weather: WeatherDay) -> bool:
        cfg = self._config
        if weather.temperature < cfg.cooling_min_temp_c:
            return True
        return _mentions(weather.condition, cfg.cooling_exclusion_conditions)

    def _heating_excluded(self, weather: WeatherDay) -> bool:
        cfg = self._config
        if weather.temperature > cfg.heating_max_temp_c:
            return True
        if _mentions(weather.condition, cfg.heating_exclusion_conditions):
            return True
        return weather.temperature >= cfg.cooling_min_temp_c and _mentions(
            weather.condition, cfg.warm_clear_conditions
        )


def _mentions(condition: str, keywords: Iterable[str]) -> bool:
    text = condition.lower()
    return any(keyword and keyword in text for keyword in keywords)
