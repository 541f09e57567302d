from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, HTTPException, status

from household_energy.api.dependencies import get_service
from household_energy.api.routes.plan_dto import PlanRunRequestDto, PlanRunResponseDto
from household_energy.errors import PlannerConfigError, UpstreamDataUnavailableError
from household_energy.worker import PlanningService

router = APIRouter(prefix="/plans", tags=["plans"])


@router.post("/run", response_model=PlanRunResponseDto)
async def run_plans(
    service: Annotated[PlanningService, Depends(get_service)],
    payload: Annotated[PlanRunRequestDto | None, Body()] = None,
) -> PlanRunResponseDto:
    request = payload or PlanRunRequestDto()
    try:
        run, result = await service.trigger_run(
            devices=request.devices,
            budget=request.budget,
            start_date=request.start_date,
        )
    except PlannerConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except UpstreamDataUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        ) from exc
    return PlanRunResponseDto.from_result(run, result)


@router.get("/latest", response_model=PlanRunResponseDto)
async def latest_plans(
    service: Annotated[PlanningService, Depends(get_service)],
) -> PlanRunResponseDto:
    latest = await service.get_latest()
    if latest is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No plan available")
    run, result = latest
    return PlanRunResponseDto.from_result(run, result)
