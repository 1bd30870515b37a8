"""
Incremental feasibility checks for partially edited schedules.
"""

from .pipeline import FeasibilityPipeline, evaluate
from .state import FeasibilityState
from .narration import Narrator, PlainNarrator

__all__ = [
    "FeasibilityPipeline",
    "evaluate",
    "FeasibilityState",
    "Narrator",
    "PlainNarrator"
]
