"""Worker package for collaborator orchestration and plan generation."""

from household_energy.worker.service import PlanningResult, PlanningService, PlanRunState

__all__ = ["PlanRunState", "PlanningResult", "PlanningService"]
