from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Iterable, Mapping
from typing import Any, cast

from household_energy.planner.frequency import MAX_HOURS_PER_DAY

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE)
_DAY_KEY = re.compile(r"^day\s*_?\s*(\d+)$", re.IGNORECASE)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Pull the first JSON object out of a free-text reply."""
    candidates: list[str] = [match.group(1) for match in _FENCED_JSON.finditer(text)]
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start : end + 1])
    for candidate in candidates:
        try:
            loaded = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(loaded, dict):
            return cast(dict[str, Any], loaded)
    return None


def coerce_hours(value: object) -> float:
    """Turn an untrusted hours value into a number in ``[0, 24]``."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, Mapping):
        value = cast(Mapping[str, object], value).get("hours")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0.0
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        return 0.0
    return min(float(value), MAX_HOURS_PER_DAY)


def parse_proposal(
    payload: str | Mapping[str, Any] | None,
    device_ids: Iterable[str],
    num_days: int,
) -> list[dict[str, float] | None]:
    """Read per-day device hours from a text-generation reply.

    Accepts ``{"plan": {"day1": {"devices": {id: {"hours": h}}}}}`` as well as
    the flat ``{"hours": {"day1": {id: h}}}`` shape. The result has one entry per
    day; days the reply does not cover are ``None`` so the caller can substitute
    its own baseline. Unknown devices are dropped and devices missing from a
    covered day get 0 hours.
    """
    known = list(device_ids)
    empty: list[dict[str, float] | None] = [None] * num_days
    if payload is None:
        return empty

    data: Mapping[str, Any] | None
    if isinstance(payload, str):
        data = extract_json_object(payload)
        if data is None:
            logger.warning("Proposal reply did not contain a JSON object; using baseline")
            return empty
    else:
        data = payload

    days = _day_table(data)
    if days is None:
        logger.warning("Proposal reply has no plan or hours table; using baseline")
        return empty

    proposals = list(empty)
    for key, raw_day in days.items():
        day = _day_number(key)
        if day is None or not 1 <= day <= num_days:
            continue
        devices = _day_devices(raw_day)
        if devices is None:
            continue
        hours_by_id = {str(device_id).strip(): value for device_id, value in devices.items()}
        proposals[day - 1] = {
            device_id: coerce_hours(hours_by_id.get(device_id)) for device_id in known
        }

    covered = sum(1 for day in proposals if day is not None)
    if covered < num_days:
        logger.info("Proposal covers %d of %d days; baseline fills the rest", covered, num_days)
    return proposals


def parse_emission_ratings(
    payload: Mapping[str, Any] | None,
    device_ids: Iterable[str],
) -> dict[str, int]:
    """Read ``{"emissionRatings": {id: 1..5}}``; invalid entries are skipped."""
    if not payload:
        return {}
    raw = payload.get("emissionRatings", payload.get("emission_ratings"))
    if not isinstance(raw, Mapping):
        return {}
    known = set(device_ids)
    ratings: dict[str, int] = {}
    for device_id, value in cast(Mapping[str, object], raw).items():
        key = str(device_id).strip()
        if key not in known or isinstance(value, bool):
            continue
        if isinstance(value, Mapping):
            value = cast(Mapping[str, object], value).get("rating")
        try:
            rating = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if 1 <= rating <= 5:
            ratings[key] = rating
    return ratings


def _day_table(data: Mapping[str, Any]) -> Mapping[str, Any] | None:
    plan = data.get("plan")
    if isinstance(plan, Mapping):
        return cast(Mapping[str, Any], plan)
    hours = data.get("hours")
    if isinstance(hours, Mapping):
        return cast(Mapping[str, Any], hours)
    return None


def _day_number(key: object) -> int | None:
    match = _DAY_KEY.match(str(key).strip())
    if match is None:
        return None
    return int(match.group(1))


def _day_devices(raw_day: object) -> Mapping[str, Any] | None:
    if not isinstance(raw_day, Mapping):
        return None
    day = cast(Mapping[str, Any], raw_day)
    devices = day.get("devices")
    if isinstance(devices, Mapping):
        return cast(Mapping[str, Any], devices)
    if "devices" in day:
        return {}
    return {key: value for key, value in day.items() if key != "totalCost"}
