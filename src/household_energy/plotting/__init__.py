"""Plotting utilities."""

from household_energy.plotting.plan import plot_daily_costs

__all__ = ["plot_daily_costs"]
