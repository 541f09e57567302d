from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

WeatherSensitivity = Literal["cooling", "heating", "neutral"]
EmissionLevel = Literal["very-high", "high", "medium", "low"]
Frequency = Literal["daily", "weekends", "rarely", "frequently"]

_SEPARATORS = re.compile(r"[_\-/]+")
_AC_WORD = re.compile(r"\bac\b")

_COOLING_KEYWORDS = ("air conditioner", "air condition", "fan", "cooler", "cooling")
_HEATING_KEYWORDS = ("heater", "heating")
_WATER_HEATING_KEYWORDS = ("water", "geyser", "boiler")

_HIGH_EMISSION_KEYWORDS = ("air conditioner", "heater", "dryer", "oven", "stove")
_MEDIUM_EMISSION_KEYWORDS = ("tv", "television", "microwave", "washing machine", "dishwasher")
_LOW_BUT_ACTIVE_KEYWORDS = ("fan", "blender")

_EMISSION_RATINGS: dict[EmissionLevel, int] = {
    "very-high": 5,
    "high": 4,
    "medium": 3,
    "low": 1,
}


@dataclass(frozen=True, slots=True)
class DeviceClassification:
    weather_sensitivity: WeatherSensitivity
    emission_level: EmissionLevel
    emission_rating: int


def _normalize(*parts: str | None) -> str:
    text = " ".join(part for part in parts if part)
    return _SEPARATORS.sub(" ", text.lower())


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def _is_air_conditioner(text: str) -> bool:
    return "air conditioner" in text or _AC_WORD.search(text) is not None


def _is_water_heating(text: str) -> bool:
    if "geyser" in text or "boiler" in text:
        return True
    return "water" in text and "heat" in text


def classify_weather_sensitivity(device_type: str, name: str | None = None) -> WeatherSensitivity:
    text = _normalize(device_type, name)
    if _contains_any(text, _COOLING_KEYWORDS) or _AC_WORD.search(text):
        return "cooling"
    if _contains_any(text, _HEATING_KEYWORDS) and not _contains_any(
        text, _WATER_HEATING_KEYWORDS
    ):
        return "heating"
    return "neutral"


def classify_emission_level(device_type: str, name: str | None = None) -> EmissionLevel:
    text = _normalize(device_type, name)
    if "gas" in text or _is_water_heating(text):
        return "very-high"
    if _is_air_conditioner(text) or _contains_any(text, _HIGH_EMISSION_KEYWORDS):
        return "high"
    if _contains_any(text, _MEDIUM_EMISSION_KEYWORDS):
        return "medium"
    return "low"


def emission_rating(device_type: str, name: str | None = None) -> int:
    """Rate a device's emissions from 1 (lowest) to 5 (highest)."""
    level = classify_emission_level(device_type, name)
    if level == "low" and _contains_any(_normalize(device_type, name), _LOW_BUT_ACTIVE_KEYWORDS):
        return 2
    return _EMISSION_RATINGS[level]


def is_high_emission(level: EmissionLevel) -> bool:
    return level in ("very-high", "high")


def classify_frequency(value: str | None) -> Frequency:
    text = _normalize(value)
    if "weekend" in text:
        return "weekends"
    if "rare" in text or "occasional" in text:
        return "rarely"
    if "frequent" in text or "often" in text:
        return "frequently"
    return "daily"


def classify_device(device_type: str, name: str | None = None) -> DeviceClassification:
    return DeviceClassification(
        weather_sensitivity=classify_weather_sensitivity(device_type, name),
        emission_level=classify_emission_level(device_type, name),
        emission_rating=emission_rating(device_type, name),
    )
