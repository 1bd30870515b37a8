"""
Narration turns a ConstraintReport into human-readable lines. Template-based
narrators plug in through the Narrator protocol; PlainNarrator is the
built-in fallback that relies only on the entries' own fields.
"""

from typing import List, Protocol

from schedulemaker.models import ConstraintReport, ConstraintStatus


class Narrator(Protocol):
    def narrate(self, report: ConstraintReport) -> List[str]:
        ...


class PlainNarrator:
    PREFIX = {
        ConstraintStatus.VIOLATED: "BLOCKED",
        ConstraintStatus.TIGHT: "WARNING",
    }

    def narrate(self, report: ConstraintReport) -> List[str]:
        lines = []
        for entry in report.violations() + report.warnings():
            lines.append(f"[{self.PREFIX[entry.status]}] {entry.message} ({entry.evidence})")
        if not lines:
            lines.append("All constraints healthy")
        return lines
