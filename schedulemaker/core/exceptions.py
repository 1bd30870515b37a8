"""
Error types raised by the scheduling services.

Feasibility problems found while a human edits a schedule are not errors:
they are reported as VIOLATED entries of a ConstraintReport.
"""

from typing import Iterable, List, Optional


class SchedulingError(Exception):
    """Base class for all scheduling errors."""


class StructuralInfeasibility(SchedulingError):
    """
    The inputs can never produce a valid schedule (e.g. more byes needed than
    the bye window can hold). Detected before any solve; fatal to the attempt.
    """

    def __init__(self, dimension: str, message: str, demand: int = 0, supply: int = 0):
        self.dimension = dimension
        self.demand = demand
        self.supply = supply
        super().__init__(f"{dimension}: {message} (demand {demand}, supply {supply})")

    @property
    def shortfall(self) -> int:
        return max(0, self.demand - self.supply)


class SolverDegenerate(SchedulingError):
    """The relaxed or exact solve produced nothing usable; the caller falls back."""

    def __init__(self, method: str, reason: str):
        self.method = method
        self.reason = reason
        super().__init__(f"{method} solve degenerate: {reason}")


class PartialResidual(SchedulingError):
    """The greedy fallback could not place every matchup."""

    def __init__(self, residual: Iterable[str], dimensions: Optional[List[str]] = None, message: str = ""):
        self.residual = sorted(residual)
        self.dimensions = list(dimensions or [])
        text = message or f"{len(self.residual)} matchups left unplaced"
        if self.dimensions:
            text += f" (blocked by {', '.join(self.dimensions)})"
        super().__init__(text)


class InvalidMutation(SchedulingError):
    """A single edit was rejected; the schedule it was applied to is unchanged."""


class GenerationInProgress(SchedulingError):
    """A regeneration is already running for this schedule session."""
