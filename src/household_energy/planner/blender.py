from __future__ import annotations

import logging

from household_energy.models.config import TrimmerConfig
from household_energy.planner.models import DeviceAllocation, DaySchedule, MonthPlan, PlanWarning
from household_energy.planner.trimmer import BudgetTrimmer, TrimItem


class PlanBlender:
    """Average two finished plans day by day into the balance plan.

    Devices missing from one side count as zero hours. The averaged day is
    trimmed again, without floors, whenever it exceeds the blended daily budget.
    """

    def __init__(
        self,
        config: TrimmerConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._trimmer = BudgetTrimmer(config, logger=self._logger)

    def blend(self, first: MonthPlan, second: MonthPlan) -> MonthPlan:
        if len(first.days) != len(second.days):
            raise ValueError(
                f"cannot blend plans of different length ({len(first.days)} vs {len(second.days)})"
            )
        if not first.days:
            raise ValueError("cannot blend empty plans")

        monthly_budget = (first.monthly_budget + second.monthly_budget) / 2
        daily_budget = monthly_budget / len(first.days)
        price = (first.price_per_kwh + second.price_per_kwh) / 2

        schedules: list[DaySchedule] = []
        warnings: list[PlanWarning] = []
        for left, right in zip(first.days, second.days):
            if left.day != right.day:
                raise ValueError(f"day mismatch while blending: {left.day} vs {right.day}")
            items = _averaged_items(left, right)
            result = self._trimmer.trim(items, daily_budget, price)
            if result.tier != "none":
                self._logger.debug(
                    "balance day %d trimmed (%s) to %.2f", left.day, result.tier, result.total_cost
                )
            if not result.budget_met:
                warnings.append(
                    PlanWarning(
                        day=left.day,
                        budget=daily_budget,
                        achieved_cost=result.total_cost,
                        message="Blended daily budget could not be met after strict enforcement",
                    )
                )
            schedules.append(
                DaySchedule(
                    day=left.day,
                    date=left.date,
                    is_weekend=left.is_weekend,
                    allocations=result.allocations,
                    total_cost=result.total_cost,
                    total_energy_kwh=result.total_energy_kwh,
                    budget=daily_budget,
                    budget_met=result.budget_met,
                    weather=left.weather or right.weather,
                )
            )

        plan = MonthPlan(
            plan_type="balance",
            days=schedules,
            total_cost=round(sum(day.total_cost for day in schedules), 2),
            total_energy_kwh=round(sum(day.total_energy_kwh for day in schedules), 3),
            monthly_budget=monthly_budget,
            daily_budget=daily_budget,
            price_per_kwh=price,
            warnings=warnings,
        )
        self._logger.info(
            "balance plan: total %.2f of %.2f budget, %d over-budget days",
            plan.total_cost,
            monthly_budget,
            len(warnings),
        )
        return plan


def _averaged_items(left: DaySchedule, right: DaySchedule) -> list[TrimItem]:
    info: dict[str, DeviceAllocation] = {}
    for allocation in (*left.allocations, *right.allocations):
        info.setdefault(allocation.device_id, allocation)
    left_hours = left.hours_by_device()
    right_hours = right.hours_by_device()
    return [
        TrimItem(
            device_id=device_id,
            name=meta.name,
            watts=meta.watts,
            priority=meta.priority,
            hours=(left_hours.get(device_id, 0.0) + right_hours.get(device_id, 0.0)) / 2,
        )
        for device_id, meta in info.items()
    ]
