from __future__ import annotations


class PlannerConfigError(ValueError):
    """Raised before any scheduling work when the planning inputs are unusable."""


class UpstreamDataUnavailableError(RuntimeError):
    """Raised when a collaborator failed and the plan cannot proceed without its data."""
