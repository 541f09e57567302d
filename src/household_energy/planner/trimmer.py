from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

from household_energy.models.config import TrimmerConfig
from household_energy.planner.models import DeviceAllocation, energy_cost, energy_kwh

TrimTier = Literal["none", "floor", "strict", "exhausted"]

_EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class TrimItem:
    device_id: str
    hours: float
    watts: float
    priority: int
    name: str = ""
    floor: float = 0.0


@dataclass(slots=True)
class _WorkingItem:
    index: int
    device_id: str
    name: str
    watts: float
    priority: int
    floor: float
    hours: float


@dataclass(frozen=True, slots=True)
class TrimResult:
    allocations: list[DeviceAllocation]
    total_cost: float
    total_energy_kwh: float
    budget: float
    budget_met: bool
    tier: TrimTier
    iterations: int = 0
    strict_iterations: int = 0

    def hours_by_device(self) -> dict[str, float]:
        return {item.device_id: item.hours for item in self.allocations}


@dataclass(frozen=True, slots=True)
class BudgetCheck:
    valid: bool
    total_cost: float
    under_by: float


class BudgetTrimmer:
    """Reduce a day's device hours until the day's cost fits a budget.

    Tier 1 cuts every device in passes. Each pass shaves a band-dependent step
    (scaled by priority) from each device without crossing its floor or the
    band's lower edge, and the pass that would cross the budget is applied only
    in proportion, so a day lands on the budget and a higher priority never
    ends with fewer hours. Tier 2 only runs when floors make the budget
    unreachable; it ignores floors and removes a fixed step from the largest
    allocation each iteration. Both tiers are bounded by iteration counts. When
    neither meets the budget the best allocation reached is returned with
    ``budget_met=False``. Trimmed days round hours down to the tenth.
    """

    def __init__(
        self,
        config: TrimmerConfig | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or TrimmerConfig()
        self._logger = logger or logging.getLogger(__name__)

    def trim(
        self,
        items: Sequence[TrimItem],
        budget: float,
        price_per_kwh: float,
    ) -> TrimResult:
        if price_per_kwh <= 0:
            raise ValueError("price_per_kwh must be > 0")
        if budget < 0:
            raise ValueError("budget must be >= 0")

        working = [
            _WorkingItem(
                index=idx,
                device_id=item.device_id,
                name=item.name or item.device_id,
                watts=float(item.watts),
                priority=int(item.priority),
                floor=max(0.0, float(item.floor)),
                hours=max(0.0, float(item.hours)),
            )
            for idx, item in enumerate(items)
        ]

        total = _total_cost(working, price_per_kwh)
        if total <= budget + _EPSILON:
            return self._finalize(working, budget, price_per_kwh, tier="none")

        self._logger.debug("Trimming from %.2f to budget %.2f", total, budget)
        total, iterations = self._trim_respecting_floors(working, budget, price_per_kwh, total)
        if total <= budget + _EPSILON:
            return self._finalize(
                working, budget, price_per_kwh, tier="floor", iterations=iterations
            )

        self._logger.debug(
            "Floors keep cost at %.2f over budget %.2f; enforcing strictly", total, budget
        )
        total, strict_iterations = self._trim_strict(working, budget, price_per_kwh, total)
        tier: TrimTier = "strict" if total <= budget + _EPSILON else "exhausted"
        if tier == "exhausted":
            self._logger.warning(
                "Could not trim to budget %.2f; best achieved %.2f", budget, total
            )
        return self._finalize(
            working,
            budget,
            price_per_kwh,
            tier=tier,
            iterations=iterations,
            strict_iterations=strict_iterations,
        )

    def _trim_respecting_floors(
        self,
        working: list[_WorkingItem],
        budget: float,
        price_per_kwh: float,
        total: float,
    ) -> tuple[float, int]:
        iterations = 0
        max_iterations = self._floor_pass_limit()
        while total > budget + _EPSILON and iterations < max_iterations:
            targets = [self._next_hours(item) for item in working]
            if all(target >= item.hours for item, target in zip(working, targets)):
                break
            iterations += 1
            new_total = sum(
                energy_cost(item.watts, target, price_per_kwh)
                for item, target in zip(working, targets)
            )
            if new_total <= budget:
                # Apply only the share of this pass the budget still needs.
                share = (total - budget) / (total - new_total)
                for item, target in zip(working, targets):
                    item.hours -= share * (item.hours - target)
                return _total_cost(working, price_per_kwh), iterations
            for item, target in zip(working, targets):
                item.hours = target
            total = new_total
        return total, iterations

    def _trim_strict(
        self,
        working: list[_WorkingItem],
        budget: float,
        price_per_kwh: float,
        total: float,
    ) -> tuple[float, int]:
        iterations = 0
        while total > budget + _EPSILON and iterations < self._config.max_strict_iterations:
            candidates = [item for item in working if item.hours > 0]
            if not candidates:
                break
            iterations += 1
            largest = min(candidates, key=lambda item: (-item.hours, item.priority))
            largest.hours = max(0.0, largest.hours - self._config.strict_step_hours)
            total = _total_cost(working, price_per_kwh)
        return total, iterations

    def _next_hours(self, item: _WorkingItem) -> float:
        if item.hours <= item.floor:
            return item.hours
        for band in self._config.step_bands:
            if item.hours > band.above_hours:
                step = band.step_hours * self._priority_weight(item.priority)
                return max(item.floor, band.above_hours, item.hours - step)
        return item.floor

    def _floor_pass_limit(self) -> int:
        # Weighted steps are shorter, so the pass limit stretches by the smallest weight.
        weakest = min(self._config.priority_step_weights.values())
        return math.ceil(self._config.max_iterations / weakest)

    def _priority_weight(self, priority: int) -> float:
        clamped = min(max(priority, 1), 5)
        return self._config.priority_step_weights[clamped]

    def _finalize(
        self,
        working: list[_WorkingItem],
        budget: float,
        price_per_kwh: float,
        *,
        tier: TrimTier,
        iterations: int = 0,
        strict_iterations: int = 0,
    ) -> TrimResult:
        ordered = sorted(working, key=lambda item: item.index)
        if tier == "none":
            hours = [round(item.hours, 1) for item in ordered]
            if _rounded_cost(ordered, hours, price_per_kwh) > budget + _EPSILON:
                # Nearest rounding pushed the day back over budget; round those devices down.
                hours = [
                    _floor_tenth(item.hours) if value > item.hours else value
                    for item, value in zip(ordered, hours)
                ]
        else:
            hours = [_floor_tenth(item.hours) for item in ordered]

        allocations = [
            DeviceAllocation(
                device_id=item.device_id,
                name=item.name,
                watts=item.watts,
                priority=item.priority,
                hours=value,
                cost=round(energy_cost(item.watts, value, price_per_kwh), 2),
                energy_kwh=round(energy_kwh(item.watts, value), 3),
            )
            for item, value in zip(ordered, hours)
        ]
        total_cost = round(sum(item.cost for item in allocations), 2)
        total_energy = round(sum(item.energy_kwh for item in allocations), 3)
        return TrimResult(
            allocations=allocations,
            total_cost=total_cost,
            total_energy_kwh=total_energy,
            budget=budget,
            budget_met=_rounded_cost(ordered, hours, price_per_kwh) <= budget + _EPSILON,
            tier=tier,
            iterations=iterations,
            strict_iterations=strict_iterations,
        )


def _total_cost(items: Iterable[_WorkingItem], price_per_kwh: float) -> float:
    return sum(energy_cost(item.watts, item.hours, price_per_kwh) for item in items)


def _rounded_cost(
    items: Sequence[_WorkingItem], hours: Sequence[float], price_per_kwh: float
) -> float:
    return sum(energy_cost(item.watts, value, price_per_kwh) for item, value in zip(items, hours))


def _floor_tenth(value: float) -> float:
    return math.floor(value * 10 + _EPSILON) / 10


def validate_budget(allocations: Iterable[DeviceAllocation], budget: float) -> BudgetCheck:
    total = round(sum(item.cost for item in allocations), 2)
    return BudgetCheck(valid=total <= budget, total_cost=total, under_by=budget - total)


def trimming_summary(allocations: Iterable[DeviceAllocation], currency_symbol: str = "") -> str:
    items = list(allocations)
    active = sorted((item for item in items if item.hours > 0), key=lambda item: -item.hours)
    summary = ", ".join(
        f"{item.device_id}: {item.hours}h ({currency_symbol}{item.cost:.2f})" for item in active
    )
    total = sum(item.cost for item in items)
    return f"{summary} | Total: {currency_symbol}{total:.2f}"
