"""
Services for matchup generation, schedule solving, validation and editing.
"""

from .validator import ScheduleValidator
from .league_reader import LeagueReader
from .matchup_generator import MatchupGenerator
from .solver import ScheduleAssignmentSolver, SolverResult, SolveStatus, FailureReport
from .generation import GenerationResult, generate_schedule, prepare_schedule
from .editor import ScheduleSession, place_game, remove_game, assign_bye, remove_bye, record_result
from .serialization import dumps, loads, game_payload, generation_payload

__all__ = [
    "ScheduleValidator",
    "LeagueReader",
    "MatchupGenerator",
    "ScheduleAssignmentSolver",
    "SolverResult",
    "SolveStatus",
    "FailureReport",
    "GenerationResult",
    "generate_schedule",
    "prepare_schedule",
    "ScheduleSession",
    "place_game",
    "remove_game",
    "assign_bye",
    "remove_bye",
    "record_result",
    "dumps",
    "game_payload",
    "generation_payload",
    "loads"
]
