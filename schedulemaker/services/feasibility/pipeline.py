"""
Incremental feasibility pipeline.

Evaluates a partial schedule after every mutation and returns a fresh
ConstraintReport. Evaluation is a pure function of the schedule value, the
rules it carries and the current week.
"""

import time
from typing import Optional

from schedulemaker.models import ConstraintReport, ConstraintStatus, Schedule
from schedulemaker.core.config import (
    FEASIBILITY_LOOKAHEAD_WEEKS, FEASIBILITY_SHORT_CIRCUIT,
    FEASIBILITY_TIGHT_MARGIN, REMATCH_TIGHT_WEEKS
)
from schedulemaker.core.logging_config import get_logger
from schedulemaker.services.feasibility.stage_a import run_stage_a
from schedulemaker.services.feasibility.stage_b import run_stage_b
from schedulemaker.services.feasibility.stage_d import run_stage_d
from schedulemaker.services.feasibility.state import FeasibilityState

logger = get_logger(__name__)


class FeasibilityPipeline:
    """
    Runs the bound checks (stage A), the per-week pairing checks (stage B)
    and the rolling reserve checks (stage D) and merges their entries.

    With short_circuit enabled, stages B and D are skipped whenever stage A
    already reports a violation.
    """

    def __init__(self, lookahead_weeks: Optional[int] = None, tight_margin: Optional[int] = None,
                 rematch_tight_weeks: Optional[int] = None, short_circuit: Optional[bool] = None):
        self.lookahead_weeks = FEASIBILITY_LOOKAHEAD_WEEKS if lookahead_weeks is None else lookahead_weeks
        self.tight_margin = FEASIBILITY_TIGHT_MARGIN if tight_margin is None else tight_margin
        self.rematch_tight_weeks = REMATCH_TIGHT_WEEKS if rematch_tight_weeks is None else rematch_tight_weeks
        self.short_circuit = FEASIBILITY_SHORT_CIRCUIT if short_circuit is None else short_circuit

    def evaluate(self, schedule: Schedule, current_week: Optional[int] = None) -> ConstraintReport:
        """
        Evaluate a (partial) schedule.

        Args:
            schedule: Schedule value to evaluate; never modified
            current_week: Week editing has reached; defaults to the first
                week in which some team has neither a game nor a bye

        Returns:
            ConstraintReport ordered by stage, dimension and subject
        """
        start = time.perf_counter()
        state = FeasibilityState(schedule, current_week)

        entries = run_stage_a(state, self.tight_margin)
        stages = ("A",)
        stage_a_violated = any(e.status == ConstraintStatus.VIOLATED for e in entries)
        if not (self.short_circuit and stage_a_violated):
            entries.extend(run_stage_b(state, self.lookahead_weeks))
            entries.extend(run_stage_d(state, self.tight_margin, self.rematch_tight_weeks))
            stages = ("A", "B", "D")

        report = ConstraintReport.build(entries, current_week=state.current_week, stages_run=stages)
        logger.debug(
            f"Feasibility evaluated in {(time.perf_counter() - start) * 1000:.1f} ms: "
            f"{len(report.violations())} violated, {len(report.warnings())} tight"
        )
        return report


def evaluate(schedule: Schedule, current_week: Optional[int] = None, **options) -> ConstraintReport:
    """Evaluate with a one-off pipeline; options are FeasibilityPipeline arguments."""
    return FeasibilityPipeline(**options).evaluate(schedule, current_week)
