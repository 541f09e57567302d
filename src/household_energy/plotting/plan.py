from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from household_energy.planner.models import MonthPlan


def plot_daily_costs(
    plans: Sequence[MonthPlan],
    *,
    title: str = "Daily Cost per Plan",
    currency_symbol: str = "",
    output: Path | None = None,
) -> None:
    try:
        import matplotlib.pyplot as plt
    except ImportError as exc:
        raise ImportError("matplotlib is required to plot plans") from exc

    if not plans or not any(plan.days for plan in plans):
        raise ValueError("Plans have no days to plot.")

    plt.figure(figsize=(12, 6))
    for plan in plans:
        days = [day.day for day in plan.days]
        plt.plot(days, [day.total_cost for day in plan.days], label=plan.plan_type)
        plt.axhline(plan.daily_budget, linestyle="--", alpha=0.4)

    over_budget = [
        (day.day, day.total_cost) for plan in plans for day in plan.days if not day.budget_met
    ]
    if over_budget:
        plt.scatter(*zip(*over_budget), marker="x", color="red", label="over budget")

    plt.title(title)
    plt.xlabel("Day")
    plt.ylabel(f"Cost ({currency_symbol})" if currency_symbol else "Cost")
    plt.legend(loc="best")
    plt.grid(True, alpha=0.3)
    plt.tight_layout()

    if output is not None:
        plt.savefig(output)
        plt.close()
        return
    plt.show()
