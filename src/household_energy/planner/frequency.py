from __future__ import annotations

import datetime as dt
import logging
import random
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from household_energy.models.devices import Device
from household_energy.planner.classifier import classify_emission_level, is_high_emission

# Chooses which active days survive the weekly cap: (active day numbers, cap) -> kept days.
DaySelector = Callable[[Sequence[int], int], Sequence[int]]

DAILY_FLOOR_FACTOR = 0.6
HIGH_EMISSION_HOURS_FACTOR = 0.3
LOW_EMISSION_WEEKEND_FACTOR = 0.8
MAX_HOURS_PER_DAY = 24.0


@dataclass(frozen=True, slots=True)
class PlanningDay:
    day: int
    date: dt.date
    is_weekend: bool


@dataclass(frozen=True, slots=True)
class EnforcedDay:
    day: int
    is_weekend: bool
    hours: dict[str, float]
    # Minimum hours per device for this day only; 0 when the device carries no floor.
    floors: dict[str, float]


def build_planning_days(start: dt.date, num_days: int) -> list[PlanningDay]:
    days: list[PlanningDay] = []
    for offset in range(num_days):
        current = start + dt.timedelta(days=offset)
        days.append(PlanningDay(day=offset + 1, date=current, is_weekend=current.weekday() >= 5))
    return days


def _priority_share(priority: int) -> float:
    return max(priority, 1) / 5.0


class FrequencyEnforcer:
    """Shape proposed hours so each device honours its usage frequency.

    Daily devices appear every day with a priority-scaled floor, weekend devices
    only run on Saturday and Sunday, and rarely/frequently devices are capped at
    ``weekly_active_day_cap`` active days per week. Both of the latter classes
    share the same cap.
    """

    def __init__(
        self,
        *,
        emission_oriented: bool = False,
        weekly_active_day_cap: int = 3,
        week_length_days: int = 7,
        rng: random.Random | None = None,
        selector: DaySelector | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if week_length_days < 1:
            raise ValueError("week_length_days must be >= 1")
        if weekly_active_day_cap < 0:
            raise ValueError("weekly_active_day_cap must be >= 0")
        self._emission_oriented = emission_oriented
        self._cap = weekly_active_day_cap
        self._week_length = week_length_days
        self._rng = rng or random.Random()
        self._selector = selector or self._random_selection
        self._logger = logger or logging.getLogger(__name__)

    def daily_floor(self, device: Device) -> float:
        floor = device.hours_per_day * _priority_share(device.priority) * DAILY_FLOOR_FACTOR
        emission_cap = self._emission_cap(device)
        if emission_cap is not None:
            return min(floor, emission_cap)
        return floor

    def enforce_device_day(
        self,
        device: Device,
        proposed_hours: float,
        *,
        is_weekend: bool,
    ) -> tuple[float, float]:
        """Return ``(hours, floor)`` for one device on one day."""
        proposed = min(max(float(proposed_hours), 0.0), MAX_HOURS_PER_DAY)
        match device.frequency:
            case "daily":
                floor = self.daily_floor(device)
                hours = max(proposed, floor)
                emission_cap = self._emission_cap(device)
                if emission_cap is not None:
                    hours = min(hours, emission_cap)
                return hours, floor
            case "weekends":
                if not is_weekend:
                    return 0.0, 0.0
                return self._weekend_hours(device), 0.0
            case _:
                return proposed, 0.0

    def enforce(
        self,
        days: Sequence[PlanningDay],
        devices: Sequence[Device],
        proposals: Sequence[Mapping[str, float]],
        excluded: Sequence[frozenset[str]] | None = None,
    ) -> list[EnforcedDay]:
        if len(proposals) != len(days):
            raise ValueError("proposals length does not match planning days")
        if excluded is not None and len(excluded) != len(days):
            raise ValueError("excluded length does not match planning days")

        enforced: list[EnforcedDay] = []
        for idx, day in enumerate(days):
            skipped = excluded[idx] if excluded is not None else frozenset()
            hours: dict[str, float] = {}
            floors: dict[str, float] = {}
            for device in devices:
                if device.id in skipped:
                    hours[device.id] = 0.0
                    floors[device.id] = 0.0
                    continue
                device_hours, floor = self.enforce_device_day(
                    device,
                    proposals[idx].get(device.id, 0.0),
                    is_weekend=day.is_weekend,
                )
                hours[device.id] = device_hours
                floors[device.id] = floor
            enforced.append(
                EnforcedDay(day=day.day, is_weekend=day.is_weekend, hours=hours, floors=floors)
            )

        self._apply_weekly_caps(enforced, devices)
        return enforced

    def _apply_weekly_caps(self, enforced: list[EnforcedDay], devices: Sequence[Device]) -> None:
        capped = [device for device in devices if device.frequency in ("rarely", "frequently")]
        if not capped:
            return
        for start in range(0, len(enforced), self._week_length):
            week = enforced[start : start + self._week_length]
            for device in capped:
                active = [day.day for day in week if day.hours.get(device.id, 0.0) > 0]
                if len(active) <= self._cap:
                    continue
                kept = set(self._selector(active, self._cap))
                for day in week:
                    if day.day in active and day.day not in kept:
                        day.hours[device.id] = 0.0
                self._logger.debug(
                    "Weekly cap for %s (%s): kept days %s of %s",
                    device.id,
                    device.frequency,
                    sorted(kept),
                    active,
                )

    def _random_selection(self, active: Sequence[int], cap: int) -> Sequence[int]:
        return self._rng.sample(list(active), cap)

    def _emission_cap(self, device: Device) -> float | None:
        if not self._emission_oriented:
            return None
        if not is_high_emission(classify_emission_level(device.type, device.name)):
            return None
        return device.hours_per_day * HIGH_EMISSION_HOURS_FACTOR

    def _weekend_hours(self, device: Device) -> float:
        if not self._emission_oriented:
            return device.hours_per_day * _priority_share(device.priority)
        if is_high_emission(classify_emission_level(device.type, device.name)):
            return device.hours_per_day * HIGH_EMISSION_HOURS_FACTOR
        return device.hours_per_day * LOW_EMISSION_WEEKEND_FACTOR
