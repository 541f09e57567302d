from __future__ import annotations

from fastapi import FastAPI

from household_energy.api.dependencies import GlobalDependencies
from household_energy.api.routes import devices, plans, settings
from household_energy.models.config import AppConfig
from household_energy.worker import PlanningService


def create_app(app_config: AppConfig, service: PlanningService | None = None) -> FastAPI:
    app = FastAPI(title="Household Energy Planner")
    app.state.dependencies = GlobalDependencies(config=app_config, service=service)
    app.include_router(plans.router)
    app.include_router(settings.router)
    app.include_router(devices.router)
    return app
