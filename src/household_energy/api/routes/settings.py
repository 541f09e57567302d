from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from household_energy.api.dependencies import get_config
from household_energy.models.config import AppConfig, PlannerConfig

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=PlannerConfig)
def read_settings(
    app_config: Annotated[AppConfig, Depends(get_config)],
) -> PlannerConfig:
    return app_config.planner
