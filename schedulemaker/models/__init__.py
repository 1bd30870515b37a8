"""
Data models for the scheduling system.
"""

from .models import (
    Category,
    Team,
    Matchup,
    LeagueRules,
    MatchupQuotas,
    Week,
    GameResult,
    Game,
    Bye,
    Schedule,
    SchedulingConstraint,
    ScheduleValidationResult,
    TeamScheduleStats,
    WeekScheduleStats
)
from .report import (
    ConstraintStatus,
    Dimension,
    ConstraintEntry,
    ConstraintReport
)

__all__ = [
    "Category",
    "Team",
    "Matchup",
    "LeagueRules",
    "MatchupQuotas",
    "Week",
    "GameResult",
    "Game",
    "Bye",
    "Schedule",
    "SchedulingConstraint",
    "ScheduleValidationResult",
    "TeamScheduleStats",
    "WeekScheduleStats",
    "ConstraintStatus",
    "Dimension",
    "ConstraintEntry",
    "ConstraintReport"
]
