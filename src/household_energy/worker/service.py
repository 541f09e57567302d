from __future__ import annotations

import asyncio
import datetime as dt
import json
import logging
import random
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from household_energy.errors import PlannerConfigError, UpstreamDataUnavailableError
from household_energy.lib.text_generation import (
    GeneratedReply,
    ProposalTask,
    TextGenerationClient,
    build_prompt_payload,
)
from household_energy.lib.weather import OpenMeteoClient, fill_with_seasonal
from household_energy.models.config import AppConfig, BudgetConfig
from household_energy.models.devices import Device
from household_energy.models.weather import WeatherForecast
from household_energy.planner.blender import PlanBlender
from household_energy.planner.frequency import DaySelector
from household_energy.planner.models import MonthPlan
from household_energy.planner.output import (
    PersistedPlan,
    balance_metrics,
    cost_metrics,
    eco_metrics,
    to_persisted_plan,
)
from household_energy.planner.proposal import (
    extract_json_object,
    parse_emission_ratings,
    parse_proposal,
)
from household_energy.planner.scheduler import MonthScheduler, cost_strategy, eco_strategy

logger = logging.getLogger(__name__)

LATEST_PLANS_FILENAME = "latest_plans.json"

RunStatus = Literal["running", "completed", "failed"]


@dataclass(slots=True)
class PlanRunState:
    run_id: str
    status: RunStatus
    accepted_at: dt.datetime
    started_at: dt.datetime | None = None
    finished_at: dt.datetime | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True)
class PlanningResult:
    generated_at: dt.datetime
    start_date: dt.date
    cost: MonthPlan
    eco: MonthPlan
    balance: MonthPlan
    weather: list[WeatherForecast] = field(default_factory=list)
    persisted: list[PersistedPlan] = field(default_factory=list)

    def plans(self) -> list[MonthPlan]:
        return [self.cost, self.eco, self.balance]


class PlanningService:
    """Gather collaborator data, then build the cost, eco and balance plans.

    Weather is loaded first because it feeds the text-generation prompts; the
    proposals and emission ratings are then requested concurrently. Every
    collaborator failure falls back to a deterministic default unless the
    configuration requires the live data.
    """

    def __init__(
        self,
        *,
        app_config: AppConfig,
        weather_client: OpenMeteoClient | None = None,
        text_client: TextGenerationClient | None = None,
        offline: bool = False,
        rng: random.Random | None = None,
        selector: DaySelector | None = None,
        today: Callable[[], dt.date] | None = None,
    ) -> None:
        self.app_config = app_config
        self._weather_client = weather_client or OpenMeteoClient(config=app_config.weather)
        self._text_client = text_client
        self._offline = offline
        self._rng = rng
        self._selector = selector
        self._today = today or dt.date.today
        self._lock = asyncio.Lock()
        self._latest: tuple[PlanRunState, PlanningResult] | None = None

    async def trigger_run(
        self,
        *,
        devices: Sequence[Device] | None = None,
        budget: BudgetConfig | None = None,
        start_date: dt.date | None = None,
    ) -> tuple[PlanRunState, PlanningResult]:
        run = PlanRunState(
            run_id=uuid.uuid4().hex,
            status="running",
            accepted_at=_now(),
        )
        async with self._lock:
            run.started_at = _now()
            logger.info("Plan run %s started", run.run_id)
            try:
                result = await self.generate(devices=devices, budget=budget, start_date=start_date)
            except Exception as exc:
                run.status = "failed"
                run.finished_at = _now()
                run.message = str(exc)
                logger.error("Plan run %s failed: %s", run.run_id, exc)
                raise
            run.status = "completed"
            run.finished_at = _now()
            self._latest = (run, result)
            logger.info("Plan run %s completed", run.run_id)
            return run, result

    async def get_latest(self) -> tuple[PlanRunState, PlanningResult] | None:
        return self._latest

    async def generate(
        self,
        *,
        devices: Sequence[Device] | None = None,
        budget: BudgetConfig | None = None,
        start_date: dt.date | None = None,
    ) -> PlanningResult:
        devices = list(devices if devices is not None else self.app_config.devices)
        budget = budget or self.app_config.budget
        _check_plannable(devices, budget)

        planner_config = self.app_config.planner
        num_days = planner_config.horizon_days
        start = start_date or self._today() + dt.timedelta(days=1)
        logger.info(
            "Planning %d days from %s for %d devices", num_days, start.isoformat(), len(devices)
        )

        weather = await self._load_weather(start, num_days)
        cost_reply, eco_reply, ratings_reply = await self._request_proposals(
            devices, weather, budget, num_days
        )

        device_ids = [device.id for device in devices]
        ratings = parse_emission_ratings(_as_mapping(ratings_reply), device_ids)
        if not ratings:
            logger.info("Using classifier emission ratings")

        base_seed: int | None = planner_config.random_seed
        if self._rng is not None:
            base_seed = self._rng.getrandbits(64)

        cost_plan = MonthScheduler(
            cost_strategy(planner_config),
            config=planner_config,
            rng=_variant_rng(base_seed, "cost"),
            selector=self._selector,
        ).build_plan(
            devices=devices,
            monthly_budget=budget.preferred_budget,
            price_per_kwh=budget.price_per_kwh,
            start_date=start,
            weather=weather,
            proposals=parse_proposal(cost_reply, device_ids, num_days),
            currency_symbol=budget.currency_symbol,
        )
        eco_plan = MonthScheduler(
            eco_strategy(),
            config=planner_config,
            rng=_variant_rng(base_seed, "eco"),
            selector=self._selector,
        ).build_plan(
            devices=devices,
            monthly_budget=budget.average_monthly_cost,
            price_per_kwh=budget.price_per_kwh,
            start_date=start,
            weather=weather,
            proposals=parse_proposal(eco_reply, device_ids, num_days),
            emission_ratings=ratings,
            currency_symbol=budget.currency_symbol,
        )
        balance_plan = PlanBlender(planner_config.trimmer).blend(cost_plan, eco_plan)

        generated_at = _now()
        persisted = [
            to_persisted_plan(cost_plan, cost_metrics(cost_plan), generated_at=generated_at),
            to_persisted_plan(eco_plan, eco_metrics(eco_plan, devices), generated_at=generated_at),
            to_persisted_plan(
                balance_plan,
                balance_metrics(
                    balance_plan,
                    eco_plan=eco_plan,
                    average_monthly_cost=budget.average_monthly_cost,
                ),
                generated_at=generated_at,
            ),
        ]
        result = PlanningResult(
            generated_at=generated_at,
            start_date=start,
            cost=cost_plan,
            eco=eco_plan,
            balance=balance_plan,
            weather=weather,
            persisted=persisted,
        )
        self._write_latest(result)
        return result

    async def _load_weather(self, start: dt.date, num_days: int) -> list[WeatherForecast]:
        location = self.app_config.location
        require_live = self.app_config.weather.require_live_weather
        if location is None:
            if require_live:
                raise UpstreamDataUnavailableError(
                    "live weather is required but no location is configured"
                )
            logger.warning("No location configured; planning without weather exclusions")
            return []

        forecasts: list[WeatherForecast] = []
        if not self._offline:
            forecasts = await self._weather_client.fetch_daily_forecast(location)
            if not forecasts:
                if require_live:
                    raise UpstreamDataUnavailableError("weather forecast unavailable")
                logger.warning("Weather forecast unavailable; falling back to seasonal averages")
        return fill_with_seasonal(
            forecasts, start=start, num_days=num_days, latitude=location.latitude
        )

    async def _request_proposals(
        self,
        devices: Sequence[Device],
        weather: Sequence[WeatherForecast],
        budget: BudgetConfig,
        num_days: int,
    ) -> tuple[GeneratedReply | None, GeneratedReply | None, GeneratedReply | None]:
        if self._offline or self._text_client is None:
            return None, None, None
        payload = build_prompt_payload(
            devices=devices, weather=weather, budget=budget, num_days=num_days
        )
        tasks: tuple[ProposalTask, ...] = ("cost", "eco", "emission_ratings")
        replies = await asyncio.gather(
            *(self._text_client.generate(task, payload) for task in tasks),
            return_exceptions=True,
        )
        resolved: list[GeneratedReply | None] = []
        for task, reply in zip(tasks, replies):
            if isinstance(reply, BaseException):
                logger.warning("Text generation for %s failed; using defaults: %s", task, reply)
                resolved.append(None)
            else:
                resolved.append(reply)
        return resolved[0], resolved[1], resolved[2]

    def _write_latest(self, result: PlanningResult) -> None:
        path = Path(self.app_config.server.data_dir) / LATEST_PLANS_FILENAME
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                json.dumps([plan.to_json_dict() for plan in result.persisted], indent=2)
            )
        except OSError as exc:
            logger.error("Failed to write plans to %s: %s", path, exc)
            return
        logger.debug("Wrote %d plans to %s", len(result.persisted), path)


def _check_plannable(devices: Sequence[Device], budget: BudgetConfig) -> None:
    if budget.price_per_kwh is None:
        raise PlannerConfigError("budget.price_per_kwh must be configured")
    if not devices:
        raise PlannerConfigError("at least one device is required to build a plan")
    if budget.preferred_budget is None:
        raise PlannerConfigError("budget.preferred_budget is required for the cost plan")
    if budget.average_monthly_cost is None:
        raise PlannerConfigError("budget.average_monthly_cost is required for the eco plan")


def _as_mapping(reply: GeneratedReply | None) -> dict[str, Any] | None:
    if reply is None:
        return None
    if isinstance(reply, str):
        return extract_json_object(reply)
    return reply


def _now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


def _variant_rng(seed: int | None, plan_type: str) -> random.Random | None:
    """Return a generator of its own for one plan variant, or ``None`` when unseeded."""
    if seed is None:
        return None
    return random.Random(f"{seed}:{plan_type}")
