from __future__ import annotations

import datetime as dt
import logging
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from household_energy.errors import PlannerConfigError
from household_energy.models.config import PlannerConfig
from household_energy.models.devices import Device
from household_energy.models.weather import WeatherDay, WeatherForecast
from household_energy.planner.classifier import classify_weather_sensitivity, emission_rating
from household_energy.planner.frequency import (
    DaySelector,
    FrequencyEnforcer,
    build_planning_days,
)
from household_energy.planner.models import DaySchedule, MonthPlan, PlanType, PlanWarning
from household_energy.planner.trimmer import BudgetTrimmer, TrimItem, trimming_summary
from household_energy.planner.weather_filter import WeatherExclusionFilter

# Fraction of baseline hours the eco plan drops up front, keyed by emission rating.
EMISSION_REDUCTION_BY_RATING: dict[int, float] = {5: 0.30, 4: 0.20, 3: 0.15, 2: 0.10, 1: 0.05}

DayProposal = Mapping[str, float]


@dataclass(frozen=True, slots=True)
class PlanStrategy:
    plan_type: PlanType
    emission_oriented: bool = False
    # Trim toward this share of the daily budget.
    budget_headroom: float = 1.0
    reduce_baseline_by_emission: bool = False


def cost_strategy(config: PlannerConfig | None = None) -> PlanStrategy:
    headroom = config.cost_budget_headroom if config else PlannerConfig().cost_budget_headroom
    return PlanStrategy(plan_type="cost", budget_headroom=headroom)


def eco_strategy() -> PlanStrategy:
    return PlanStrategy(
        plan_type="eco",
        emission_oriented=True,
        reduce_baseline_by_emission=True,
    )


def baseline_proposal(
    devices: Sequence[Device],
    *,
    emission_ratings: Mapping[str, int] | None = None,
) -> dict[str, float]:
    """Hours each device would run on an unconstrained day."""
    if emission_ratings is None:
        return {device.id: device.hours_per_day for device in devices}
    proposal: dict[str, float] = {}
    for device in devices:
        rating = emission_ratings.get(device.id, emission_rating(device.type, device.name))
        reduction = EMISSION_REDUCTION_BY_RATING.get(rating, 0.0)
        proposal[device.id] = device.hours_per_day * (1.0 - reduction)
    return proposal


class MonthScheduler:
    """Build one plan variant across the whole horizon.

    Each day runs the weather filter, then the frequency rules (which need the
    full horizon for the weekly caps), then the budget trimmer with that day's
    floors. Days share nothing beyond the weekly partition.
    """

    def __init__(
        self,
        strategy: PlanStrategy,
        *,
        config: PlannerConfig | None = None,
        rng: random.Random | None = None,
        selector: DaySelector | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._strategy = strategy
        self._config = config or PlannerConfig()
        self._logger = logger or logging.getLogger(__name__)
        if rng is None and self._config.random_seed is not None:
            rng = random.Random(self._config.random_seed)
        self._enforcer = FrequencyEnforcer(
            emission_oriented=strategy.emission_oriented,
            weekly_active_day_cap=self._config.weekly_active_day_cap,
            week_length_days=self._config.week_length_days,
            rng=rng,
            selector=selector,
            logger=self._logger,
        )
        self._weather_filter = WeatherExclusionFilter(self._config.weather_filter)
        self._trimmer = BudgetTrimmer(self._config.trimmer, logger=self._logger)

    @property
    def strategy(self) -> PlanStrategy:
        return self._strategy

    def build_plan(
        self,
        *,
        devices: Sequence[Device],
        monthly_budget: float | None,
        price_per_kwh: float | None,
        start_date: dt.date,
        weather: Sequence[WeatherForecast] = (),
        proposals: Sequence[DayProposal | None] | None = None,
        emission_ratings: Mapping[str, int] | None = None,
        currency_symbol: str = "",
    ) -> MonthPlan:
        price, monthly = _validate_inputs(self._strategy, devices, monthly_budget, price_per_kwh)
        num_days = self._config.horizon_days
        daily_budget = monthly / num_days
        day_target = daily_budget * self._strategy.budget_headroom

        days = build_planning_days(start_date, num_days)
        baseline = baseline_proposal(
            devices,
            emission_ratings=(
                (emission_ratings or {}) if self._strategy.reduce_baseline_by_emission else None
            ),
        )
        day_proposals = _fill_proposals(proposals, baseline, num_days)

        sensitivities = {
            device.id: classify_weather_sensitivity(device.type, device.name) for device in devices
        }
        excluded: list[frozenset[str]] = []
        for day in days:
            forecast = weather[day.day - 1] if day.day <= len(weather) else None
            if forecast is None:
                excluded.append(frozenset())
                continue
            day_weather = WeatherDay.from_forecast(day.day, forecast)
            excluded.append(self._weather_filter.excluded(day_weather, sensitivities))

        enforced = self._enforcer.enforce(days, devices, day_proposals, excluded)
        by_id = {device.id: device for device in devices}

        schedules: list[DaySchedule] = []
        warnings: list[PlanWarning] = []
        for day, shaped in zip(days, enforced):
            items = [
                TrimItem(
                    device_id=device_id,
                    name=by_id[device_id].name,
                    hours=hours,
                    watts=by_id[device_id].watts,
                    priority=by_id[device_id].priority,
                    floor=shaped.floors.get(device_id, 0.0),
                )
                for device_id, hours in shaped.hours.items()
                if hours > 0
            ]
            result = self._trimmer.trim(items, day_target, price)
            self._logger.debug(
                "%s day %d: %s",
                self._strategy.plan_type,
                day.day,
                trimming_summary(result.allocations, currency_symbol),
            )
            if not result.budget_met:
                warnings.append(
                    PlanWarning(
                        day=day.day,
                        budget=day_target,
                        achieved_cost=result.total_cost,
                        message="Daily budget could not be met after strict enforcement",
                    )
                )
            schedules.append(
                DaySchedule(
                    day=day.day,
                    date=day.date,
                    is_weekend=day.is_weekend,
                    allocations=result.allocations,
                    total_cost=result.total_cost,
                    total_energy_kwh=result.total_energy_kwh,
                    budget=day_target,
                    budget_met=result.budget_met,
                    weather=weather[day.day - 1] if day.day <= len(weather) else None,
                )
            )

        plan = MonthPlan(
            plan_type=self._strategy.plan_type,
            days=schedules,
            total_cost=round(sum(day.total_cost for day in schedules), 2),
            total_energy_kwh=round(sum(day.total_energy_kwh for day in schedules), 3),
            monthly_budget=monthly,
            daily_budget=daily_budget,
            price_per_kwh=price,
            warnings=warnings,
        )
        self._logger.info(
            "%s plan: %d days, total %s%.2f of %s%.2f budget, %.1f kWh, %d over-budget days",
            plan.plan_type,
            len(schedules),
            currency_symbol,
            plan.total_cost,
            currency_symbol,
            monthly,
            plan.total_energy_kwh,
            len(warnings),
        )
        return plan


def _validate_inputs(
    strategy: PlanStrategy,
    devices: Sequence[Device],
    monthly_budget: float | None,
    price_per_kwh: float | None,
) -> tuple[float, float]:
    if price_per_kwh is None or price_per_kwh <= 0:
        raise PlannerConfigError("price_per_kwh must be configured and > 0")
    if not devices:
        raise PlannerConfigError("at least one device is required to build a plan")
    if monthly_budget is None or monthly_budget < 0:
        raise PlannerConfigError(f"a monthly budget >= 0 is required for the {strategy.plan_type} plan")
    return float(price_per_kwh), float(monthly_budget)


def _fill_proposals(
    proposals: Sequence[DayProposal | None] | None,
    baseline: Mapping[str, float],
    num_days: int,
) -> list[DayProposal]:
    filled: list[DayProposal] = []
    for idx in range(num_days):
        day = proposals[idx] if proposals is not None and idx < len(proposals) else None
        filled.append(dict(baseline) if day is None else day)
    return filled
