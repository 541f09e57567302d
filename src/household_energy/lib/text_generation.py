from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Literal, Protocol, cast

import httpx

from household_energy.models.config import BudgetConfig, TextGenerationConfig
from household_energy.models.devices import Device
from household_energy.models.weather import WeatherForecast

logger = logging.getLogger(__name__)

ProposalTask = Literal["cost", "eco", "emission_ratings"]
GeneratedReply = str | dict[str, Any]

_INSTRUCTIONS: dict[ProposalTask, str] = {
    "cost": (
        "Propose hours of use per device for each day so the household stays under its "
        "preferred monthly budget. Reply with JSON shaped as "
        '{"plan": {"day1": {"devices": {"<deviceId>": {"hours": 0, "cost": 0}}, '
        '"totalCost": 0}}}.'
    ),
    "eco": (
        "Propose hours of use per device for each day that reduce emissions from highly "
        "emissive devices while staying under the average monthly cost. Reply with JSON "
        'shaped as {"plan": {"day1": {"devices": {"<deviceId>": {"hours": 0}}}}}.'
    ),
    "emission_ratings": (
        "Rate every device's emissions from 1 (lowest) to 5 (highest). Reply with JSON "
        'shaped as {"emissionRatings": {"<deviceId>": 3}}.'
    ),
}


class TextGenerationClient(Protocol):
    async def generate(self, task: ProposalTask, payload: Mapping[str, Any]) -> GeneratedReply | None:
        ...


def build_prompt_payload(
    *,
    devices: Sequence[Device],
    weather: Sequence[WeatherForecast],
    budget: BudgetConfig,
    num_days: int,
) -> dict[str, Any]:
    return {
        "numDays": num_days,
        "devices": [
            {
                "id": device.id,
                "name": device.name,
                "type": device.type,
                "watts": device.watts,
                "priority": device.priority,
                "baselineHours": device.hours_per_day,
                "frequency": device.frequency,
            }
            for device in devices
        ],
        "weather": [
            {
                "date": forecast.date.isoformat(),
                "tempMin": forecast.temp_min,
                "tempMax": forecast.temp_max,
                "avgTemp": forecast.avg_temp,
                "humidity": forecast.humidity,
                "weatherCode": forecast.weather_code,
                "condition": forecast.condition,
            }
            for forecast in weather
        ],
        "budget": {
            "pricePerKwh": budget.price_per_kwh,
            "preferredBudget": budget.preferred_budget,
            "averageMonthlyCost": budget.average_monthly_cost,
            "currency": budget.currency_symbol,
        },
    }


class HttpTextGenerationClient:
    """POST a task and its data to a JSON text-generation endpoint.

    The endpoint may answer with ``{"text": "..."}`` (free text that contains
    JSON) or with the JSON object directly. Failures are logged and reported as
    ``None`` so callers can fall back to deterministic defaults.
    """

    def __init__(
        self,
        *,
        config: TextGenerationConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    async def generate(self, task: ProposalTask, payload: Mapping[str, Any]) -> GeneratedReply | None:
        body: dict[str, Any] = {
            "task": task,
            "instructions": _INSTRUCTIONS[task],
            "data": dict(payload),
        }
        if self._config.model:
            body["model"] = self._config.model
        try:
            async with httpx.AsyncClient(
                timeout=self._config.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._config.base_url, headers=self._build_headers(), json=body
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Text generation request for %s failed: %s", task, exc)
            return None

        try:
            reply: Any = response.json()
        except json.JSONDecodeError:
            return response.text or None
        if isinstance(reply, dict):
            data = cast(dict[str, Any], reply)
            text = data.get("text")
            if isinstance(text, str):
                return text
            return data
        logger.warning(
            "Unexpected text generation reply type for %s: %s", task, type(reply).__name__
        )
        return None
