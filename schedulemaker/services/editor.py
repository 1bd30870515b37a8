"""
Single-step schedule editing.

Mutations are pure: each takes a Schedule value and returns a new one, or
raises InvalidMutation and leaves the input untouched. ScheduleSession
threads the current value through a sequence of edits and re-evaluates
feasibility after each one.
"""

import threading
from typing import Callable, Dict, List, Optional, Tuple

from schedulemaker.models import ConstraintReport, Game, GameResult, Schedule
from schedulemaker.core.exceptions import GenerationInProgress, InvalidMutation
from schedulemaker.core.logging_config import get_logger
from schedulemaker.services.feasibility import FeasibilityPipeline
from schedulemaker.services.generation import generate_schedule

logger = get_logger(__name__)


def _check_week(schedule: Schedule, week: int):
    if not schedule.rules.has_week(week):
        raise InvalidMutation(f"Week {week} does not exist (season has {schedule.rules.total_weeks} weeks)")
    if week in schedule.fixed_weeks:
        raise InvalidMutation(f"Week {week} is locked")


def _check_team(schedule: Schedule, team_id: str):
    if schedule.get_team(team_id) is None:
        raise InvalidMutation(f"Unknown team: {team_id}")


def place_game(schedule: Schedule, matchup_id: str, week: int) -> Schedule:
    """
    Schedule an unplaced matchup in a week.

    Raises:
        InvalidMutation: Unknown matchup or week, locked week, matchup already
            placed, a team already booked that week, or the week is full
    """
    matchup = schedule.get_matchup(matchup_id)
    if matchup is None:
        raise InvalidMutation(f"Unknown matchup: {matchup_id}")
    _check_week(schedule, week)

    existing = schedule.get_game_for_matchup(matchup_id)
    if existing is not None:
        raise InvalidMutation(f"{matchup_id} is already scheduled in week {existing.week}")

    for team_id in (matchup.home, matchup.away):
        if schedule.byes.get(team_id) == week:
            raise InvalidMutation(f"{team_id} has its bye in week {week}")
        booked = schedule.get_team_game_in_week(team_id, week)
        if booked is not None:
            raise InvalidMutation(f"{team_id} already plays {booked.matchup.id} in week {week}")

    if len(schedule.get_week_games(week)) >= len(schedule.teams) // 2:
        raise InvalidMutation(f"Week {week} is full")

    updated = schedule.copy()
    updated.add_game(Game(matchup=matchup, week=week))
    return updated


def remove_game(schedule: Schedule, game_id: str) -> Schedule:
    """Unschedule a game; its matchup returns to the unscheduled pool."""
    game = schedule.get_game(game_id)
    if game is None:
        raise InvalidMutation(f"Unknown game: {game_id}")
    if game.week in schedule.fixed_weeks:
        raise InvalidMutation(f"Week {game.week} is locked")

    updated = schedule.copy()
    updated.remove_game(game.matchup.id)
    return updated


def assign_bye(schedule: Schedule, team_id: str, week: int) -> Schedule:
    """Reserve a team's single bye in a bye-window week."""
    _check_team(schedule, team_id)
    _check_week(schedule, week)
    rules = schedule.rules

    if not rules.is_bye_eligible(week):
        raise InvalidMutation(
            f"Week {week} is outside the bye window {rules.bye_window_start}-{rules.bye_window_end}"
        )
    if team_id in schedule.byes:
        raise InvalidMutation(f"{team_id} already has its bye in week {schedule.byes[team_id]}")
    booked = schedule.get_team_game_in_week(team_id, week)
    if booked is not None:
        raise InvalidMutation(f"{team_id} already plays {booked.matchup.id} in week {week}")
    if len(schedule.byes_in_week(week)) >= rules.max_byes_per_week:
        raise InvalidMutation(f"Week {week} already has {rules.max_byes_per_week} byes")

    updated = schedule.copy()
    updated.byes[team_id] = week
    return updated


def remove_bye(schedule: Schedule, team_id: str, week: int) -> Schedule:
    _check_team(schedule, team_id)
    _check_week(schedule, week)
    if schedule.byes.get(team_id) != week:
        raise InvalidMutation(f"{team_id} has no bye in week {week}")

    updated = schedule.copy()
    del updated.byes[team_id]
    return updated


def record_result(schedule: Schedule, game_id: str, home_score: int, away_score: int) -> Schedule:
    """Attach a final score to a scheduled game."""
    game = schedule.get_game(game_id)
    if game is None:
        raise InvalidMutation(f"Unknown game: {game_id}")
    if home_score < 0 or away_score < 0:
        raise InvalidMutation("Scores cannot be negative")

    updated = schedule.copy()
    updated.set_result(game, GameResult(home_score=home_score, away_score=away_score))
    return updated


class ScheduleSession:
    """
    Owns the current Schedule value of one editing session.

    Each edit is a single turn under an exclusive lock: apply the mutation,
    evaluate feasibility, publish the new (schedule, report) pair. A rejected
    edit leaves the published pair as it was.
    """

    def __init__(self, schedule: Schedule, pipeline: Optional[FeasibilityPipeline] = None,
                 session_id: Optional[str] = None):
        self.session_id = session_id
        self.pipeline = pipeline or FeasibilityPipeline()
        self._lock = threading.Lock()
        self._generation_lock = threading.Lock()
        self._schedule = schedule
        self._report = self.pipeline.evaluate(schedule)

    @property
    def schedule(self) -> Schedule:
        return self._schedule

    @property
    def report(self) -> ConstraintReport:
        return self._report

    def snapshot(self) -> Tuple[Schedule, ConstraintReport]:
        with self._lock:
            return self._schedule, self._report

    def _apply(self, mutation: Callable[..., Schedule], *args) -> Tuple[Schedule, ConstraintReport]:
        with self._lock:
            updated = mutation(self._schedule, *args)
            report = self.pipeline.evaluate(updated)
            self._schedule, self._report = updated, report
            return updated, report

    def place_game(self, matchup_id: str, week: int) -> Tuple[Schedule, ConstraintReport]:
        return self._apply(place_game, matchup_id, week)

    def remove_game(self, game_id: str) -> Tuple[Schedule, ConstraintReport]:
        return self._apply(remove_game, game_id)

    def assign_bye(self, team_id: str, week: int) -> Tuple[Schedule, ConstraintReport]:
        return self._apply(assign_bye, team_id, week)

    def remove_bye(self, team_id: str, week: int) -> Tuple[Schedule, ConstraintReport]:
        return self._apply(remove_bye, team_id, week)

    def record_result(self, game_id: str, home_score: int, away_score: int) -> Tuple[Schedule, ConstraintReport]:
        return self._apply(record_result, game_id, home_score, away_score)

    def evaluate(self, current_week: Optional[int] = None) -> ConstraintReport:
        """Re-evaluate the current schedule, optionally as of a given week."""
        with self._lock:
            if current_week is None:
                return self._report
            return self.pipeline.evaluate(self._schedule, current_week)

    def regenerate(self, cancel_event: Optional[threading.Event] = None, **options):
        """
        Batch-generate a complete schedule for this session's league, keeping
        the locked weeks. The session schedule is replaced only on success.

        Raises:
            GenerationInProgress: If another regeneration is running
        """
        if not self._generation_lock.acquire(blocking=False):
            raise GenerationInProgress("A regeneration is already running for this session")
        try:
            with self._lock:
                current = self._schedule
                fixed: Dict[int, List[Tuple[str, str]]] = {}
                for week in sorted(current.fixed_weeks):
                    fixed[week] = [(g.home, g.away) for g in current.get_week_games(week)]

                result = generate_schedule(
                    current.teams,
                    season_year=current.season_year,
                    rules=current.rules,
                    fixed_weeks=fixed,
                    matchups=current.matchups,
                    cancel_event=cancel_event,
                    **options,
                )
                if result.success:
                    self._schedule = result.schedule
                    self._report = self.pipeline.evaluate(result.schedule)
                    logger.info(f"Session {self.session_id} regenerated by {result.method} solve")
                else:
                    logger.warning(f"Regeneration failed, schedule unchanged: {result.message}")
                return result
        finally:
            self._generation_lock.release()
