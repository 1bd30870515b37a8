"""
Feasibility report produced after every schedule mutation.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class ConstraintStatus(Enum):
    HEALTHY = "healthy"
    TIGHT = "tight"
    VIOLATED = "violated"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    ConstraintStatus.HEALTHY: 0,
    ConstraintStatus.TIGHT: 1,
    ConstraintStatus.VIOLATED: 2,
}


class Dimension(Enum):
    # Stage A: aggregate counting bounds
    TOTAL_CAPACITY = "total_capacity"
    CATEGORY_CAPACITY = "category_capacity"
    BYE_CAPACITY = "bye_capacity"
    TEAM_QUOTA = "team_quota"
    HOME_AWAY = "home_away"
    # Stage B: per-week pairing
    WEEK_PAIRING = "week_pairing"
    # Stage D: rolling reserves
    REMATCH_WINDOW = "rematch_window"
    GROUP_RESERVE = "group_reserve"
    BYE_FORECAST = "bye_forecast"


STAGE_ORDER = {"A": 0, "B": 1, "D": 2}
_DIMENSION_ORDER = {dimension: index for index, dimension in enumerate(Dimension)}


@dataclass(frozen=True)
class ConstraintEntry:
    dimension: Dimension
    subject: str  # "" for league-wide entries, else a team, pair, week or group
    stage: str
    status: ConstraintStatus
    demand: int
    supply: int
    message: str
    team_ids: Tuple[str, ...] = ()
    weeks: Tuple[int, ...] = ()

    @property
    def key(self) -> Tuple[str, str]:
        return (self.dimension.value, self.subject)

    @property
    def evidence(self) -> str:
        return f"demand {self.demand}, supply {self.supply}"

    @property
    def slack(self) -> int:
        return self.supply - self.demand

    def sort_key(self):
        return (STAGE_ORDER[self.stage], _DIMENSION_ORDER[self.dimension], self.subject)

    def to_dict(self) -> Dict:
        return {
            "dimension": self.dimension.value,
            "subject": self.subject,
            "stage": self.stage,
            "status": self.status.value,
            "demand": self.demand,
            "supply": self.supply,
            "evidence": self.evidence,
            "message": self.message,
            "team_ids": list(self.team_ids),
            "weeks": list(self.weeks),
        }


@dataclass(frozen=True)
class ConstraintReport:
    """
    Ordered snapshot of every constraint dimension that is not trivially
    healthy. Entries are sorted by (stage, dimension, subject) so two
    evaluations of the same schedule compare and serialize identically.
    """
    entries: Tuple[ConstraintEntry, ...] = ()
    current_week: Optional[int] = None
    stages_run: Tuple[str, ...] = field(default=("A", "B", "D"))

    @classmethod
    def build(cls, entries: List[ConstraintEntry], current_week: Optional[int] = None,
              stages_run: Tuple[str, ...] = ("A", "B", "D")) -> "ConstraintReport":
        return cls(
            entries=tuple(sorted(entries, key=ConstraintEntry.sort_key)),
            current_week=current_week,
            stages_run=stages_run,
        )

    def __iter__(self) -> Iterator[ConstraintEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, dimension: Dimension, subject: str = "") -> Optional[ConstraintEntry]:
        for entry in self.entries:
            if entry.dimension == dimension and entry.subject == subject:
                return entry
        return None

    def status_of(self, dimension: Dimension, subject: str = "") -> ConstraintStatus:
        """Status of one entry; absent entries are healthy."""
        entry = self.get(dimension, subject)
        return entry.status if entry else ConstraintStatus.HEALTHY

    def by_dimension(self, dimension: Dimension) -> List[ConstraintEntry]:
        return [e for e in self.entries if e.dimension == dimension]

    def by_stage(self, stage: str) -> List[ConstraintEntry]:
        return [e for e in self.entries if e.stage == stage]

    def violations(self) -> List[ConstraintEntry]:
        return [e for e in self.entries if e.status == ConstraintStatus.VIOLATED]

    def warnings(self) -> List[ConstraintEntry]:
        return [e for e in self.entries if e.status == ConstraintStatus.TIGHT]

    @property
    def is_feasible(self) -> bool:
        return not self.violations()

    @property
    def worst_status(self) -> ConstraintStatus:
        worst = ConstraintStatus.HEALTHY
        for entry in self.entries:
            if entry.status.rank > worst.rank:
                worst = entry.status
        return worst

    def to_dict(self) -> Dict:
        return {
            "current_week": self.current_week,
            "stages_run": list(self.stages_run),
            "feasible": self.is_feasible,
            "worst_status": self.worst_status.value,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)
