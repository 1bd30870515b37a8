"""
Batch entry points: build a season's matchup pool and, optionally, assign it
to weeks in one call.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from schedulemaker.models import Game, LeagueRules, Matchup, Schedule, ScheduleValidationResult, Team
from schedulemaker.core.config import SEASON_YEAR, default_rules
from schedulemaker.core.exceptions import StructuralInfeasibility
from schedulemaker.core.logging_config import get_logger
from schedulemaker.services.matchup_generator import MatchupGenerator
from schedulemaker.services.solver import FailureReport, ScheduleAssignmentSolver, SolveStatus
from schedulemaker.services.validator import ScheduleValidator

logger = get_logger(__name__)

FixedWeeks = Dict[int, List[Tuple[str, str]]]


@dataclass
class GenerationResult:
    status: SolveStatus
    schedule: Optional[Schedule] = None
    matchups: List[Matchup] = field(default_factory=list)
    method: Optional[str] = None
    failure: Optional[FailureReport] = None
    validation: Optional[ScheduleValidationResult] = None
    diagnostics: List[str] = field(default_factory=list)
    generation_time: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == SolveStatus.SUCCESS

    @property
    def message(self) -> str:
        if self.success:
            return f"Schedule generated with {len(self.schedule.games)} games ({self.method} solve)"
        if self.failure is not None:
            return self.failure.message
        return f"Schedule generation {self.status.value}"

    def to_dict(self) -> Dict:
        return {
            "success": self.success,
            "status": self.status.value,
            "message": self.message,
            "method": self.method,
            "total_matchups": len(self.matchups),
            "failure": self.failure.to_dict() if self.failure else None,
            "diagnostics": list(self.diagnostics),
            "generation_time": self.generation_time,
        }


def build_fixed_games(matchups: List[Matchup], fixed_weeks: Optional[FixedWeeks]) -> List[Game]:
    """
    Resolve pre-fixed (home, away) pairs against the pool. The pool's
    direction wins when a pair is given the other way round.

    Raises:
        StructuralInfeasibility: If a pair is not in the pool or repeats a matchup
    """
    by_id = {m.id: m for m in matchups}
    by_pair = defaultdict(list)
    for matchup in matchups:
        by_pair[matchup.pair].append(matchup)

    games = []
    used = set()
    for week in sorted(fixed_weeks or {}):
        for home, away in fixed_weeks[week]:
            matchup = by_id.get(f"{away}@{home}")
            if matchup is None or matchup.id in used:
                candidates = [m for m in by_pair.get(tuple(sorted((home, away))), []) if m.id not in used]
                matchup = candidates[0] if candidates else None
                if matchup is not None:
                    logger.warning(f"Fixed game {away}@{home} in week {week} uses pool direction {matchup.id}")
            if matchup is None:
                raise StructuralInfeasibility(
                    "FIXED_WEEKS", f"{away}@{home} in week {week} does not match an unused pool matchup",
                    demand=1, supply=0,
                )
            used.add(matchup.id)
            games.append(Game(matchup=matchup, week=week))
    return games


def prepare_schedule(teams: List[Team], season_year: Optional[int] = None,
                     prior_standings: Optional[Dict[str, int]] = None,
                     rules: Optional[LeagueRules] = None,
                     fixed_weeks: Optional[FixedWeeks] = None,
                     matchups: Optional[List[Matchup]] = None) -> Schedule:
    """
    Build an unscheduled season: the matchup pool plus any locked weeks.
    This is the starting point for week-by-week editing.
    """
    season_year = SEASON_YEAR if season_year is None else season_year
    rules = rules or default_rules()
    if matchups is None:
        generator = MatchupGenerator(teams, season_year, prior_standings)
        quotas = generator.get_quotas()
        if quotas.games_per_team != rules.games_per_team:
            raise StructuralInfeasibility(
                "TEAM_GAMES", "league shape and rules disagree on games per team",
                demand=rules.games_per_team, supply=quotas.games_per_team,
            )
        matchups = generator.generate_matchups()

    schedule = Schedule(teams=list(teams), matchups=list(matchups), rules=rules, season_year=season_year)
    for game in build_fixed_games(matchups, fixed_weeks):
        schedule.add_game(game)
    for week in sorted(fixed_weeks or {}):
        schedule.lock_week(week)
    return schedule


def generate_schedule(teams: List[Team], prior_standings: Optional[Dict[str, int]] = None,
                      fixed_weeks: Optional[FixedWeeks] = None, season_year: Optional[int] = None,
                      rules: Optional[LeagueRules] = None, matchups: Optional[List[Matchup]] = None,
                      time_limit_seconds: Optional[float] = None, use_exact: Optional[bool] = None,
                      max_iterations: Optional[int] = None,
                      cancel_event: Optional[threading.Event] = None) -> GenerationResult:
    """
    Generate a complete schedule for a league.

    Args:
        teams: All teams of the league
        prior_standings: Optional team id -> prior finish override
        fixed_weeks: Optional week -> [(home, away), ...] games that are locked in
        season_year: Season to schedule (selects the rotation)
        rules: League rules; defaults to the configured rules
        matchups: Use this pool instead of generating one
        time_limit_seconds: Budget for the relaxation and exact solves
        use_exact: Run the exact solve when the relaxation is not integral
        max_iterations: Greedy fallback iteration budget
        cancel_event: Set to abandon the solve

    Returns:
        GenerationResult; on failure the schedule is None and failure explains why
    """
    start = time.monotonic()
    season_year = SEASON_YEAR if season_year is None else season_year

    try:
        base = prepare_schedule(teams, season_year, prior_standings, rules, fixed_weeks, matchups)
    except StructuralInfeasibility as e:
        logger.error(f"Cannot build the season: {e}")
        return GenerationResult(
            status=SolveStatus.FAILED,
            failure=FailureReport.from_structural(e),
            generation_time=time.monotonic() - start,
        )

    solver = ScheduleAssignmentSolver(
        base.teams, base.matchups, base.rules,
        fixed_games=list(base.games.values()),
        locked_weeks=set(base.fixed_weeks),
        time_limit_seconds=time_limit_seconds,
        use_exact=use_exact,
        max_iterations=max_iterations,
        cancel_event=cancel_event,
    )
    solved = solver.solve()

    result = GenerationResult(
        status=solved.status,
        matchups=base.matchups,
        method=solved.method,
        failure=solved.failure,
        diagnostics=solved.diagnostics,
    )
    if solved.success:
        schedule = base.copy()
        for game in solved.games:
            schedule.add_game(game)
        # Record the idle weeks as explicit byes so later edits keep them reserved
        for bye in schedule.get_byes():
            schedule.byes.setdefault(bye.team_id, bye.week)
        result.schedule = schedule
        result.validation = ScheduleValidator().validate_schedule(schedule)

    result.generation_time = time.monotonic() - start
    logger.info(f"{result.message} in {result.generation_time:.1f}s")
    return result
