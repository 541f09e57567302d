from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from household_energy.api.dependencies import get_config
from household_energy.api.routes.plan_dto import DeviceDto
from household_energy.models.config import AppConfig
from household_energy.planner.classifier import classify_device

router = APIRouter(prefix="/devices", tags=["devices"])


@router.get("", response_model=list[DeviceDto])
def list_devices(
    app_config: Annotated[AppConfig, Depends(get_config)],
) -> list[DeviceDto]:
    return [
        DeviceDto.from_device(device, classify_device(device.type, device.name))
        for device in app_config.devices
    ]
