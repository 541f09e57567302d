from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from household_energy.lib.slug import unique_slug
from household_energy.planner.classifier import Frequency, classify_frequency


class Device(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    type: str = "other"
    watts: float = Field(gt=0)
    hours_per_day: float = Field(ge=0, le=24)
    priority: int = Field(default=3, ge=1, le=5)
    frequency: Frequency = "daily"

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True, frozen=True)

    @field_validator("frequency", mode="before")
    @classmethod
    def _normalize_frequency(cls, value: object) -> str:
        if value is None:
            return "daily"
        if not isinstance(value, str):
            raise ValueError("frequency must be a string")
        return classify_frequency(value)


def assign_device_ids(raw_devices: list[Any]) -> list[Any]:
    """Fill in missing device ids by slugifying the device name."""
    used: set[str] = {
        str(item["id"]).strip()
        for item in raw_devices
        if isinstance(item, dict) and item.get("id")
    }
    assigned: list[Any] = []
    for item in raw_devices:
        if isinstance(item, dict) and not item.get("id") and item.get("name"):
            device_id = unique_slug(str(item["name"]), used)
            used.add(device_id)
            item = {**item, "id": device_id}
        assigned.append(item)
    return assigned
