"""
JSON documents for schedules.

A ScheduleDocument carries everything needed to rebuild a Schedule value:
reference data (teams, matchup pool, rules) plus the mutable state (games
with results, bye reservations, locked weeks).
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError

from schedulemaker.models import (
    Category, Game, LeagueRules, Matchup, Schedule, Team
)
from schedulemaker.core.exceptions import InvalidMutation
from schedulemaker.services.editor import assign_bye, place_game, record_result


class TeamDocument(BaseModel):
    id: str
    name: str
    conference: str
    division: str
    prior_rank: int = 0


class MatchupDocument(BaseModel):
    id: str
    home: str
    away: str
    category: str


class RulesDocument(BaseModel):
    total_weeks: int
    games_per_team: int
    bye_window_start: int
    bye_window_end: int
    max_byes_per_week: int
    min_rematch_gap: int
    max_cross_near_per_week: Optional[int] = None
    max_cross_far_per_week: Optional[int] = None
    max_consecutive_home: Optional[int] = None
    max_consecutive_away: Optional[int] = None


class GameDocument(BaseModel):
    id: str
    matchup_id: str
    week: int
    home_score: Optional[int] = None
    away_score: Optional[int] = None


class ScheduleDocument(BaseModel):
    season_year: int
    rules: RulesDocument
    teams: List[TeamDocument]
    matchups: List[MatchupDocument]
    games: List[GameDocument] = []
    byes: Dict[str, int] = {}
    fixed_weeks: List[int] = []


def to_document(schedule: Schedule) -> ScheduleDocument:
    rules = schedule.rules
    return ScheduleDocument(
        season_year=schedule.season_year,
        rules=RulesDocument(
            total_weeks=rules.total_weeks,
            games_per_team=rules.games_per_team,
            bye_window_start=rules.bye_window_start,
            bye_window_end=rules.bye_window_end,
            max_byes_per_week=rules.max_byes_per_week,
            min_rematch_gap=rules.min_rematch_gap,
            max_cross_near_per_week=rules.max_cross_near_per_week,
            max_cross_far_per_week=rules.max_cross_far_per_week,
            max_consecutive_home=rules.max_consecutive_home,
            max_consecutive_away=rules.max_consecutive_away,
        ),
        teams=[
            TeamDocument(id=t.id, name=t.name, conference=t.conference,
                         division=t.division, prior_rank=t.prior_rank)
            for t in schedule.teams
        ],
        matchups=[
            MatchupDocument(id=m.id, home=m.home, away=m.away, category=m.category.value)
            for m in schedule.matchups
        ],
        games=[
            GameDocument(
                id=g.id,
                matchup_id=g.matchup.id,
                week=g.week,
                home_score=g.result.home_score if g.result else None,
                away_score=g.result.away_score if g.result else None,
            )
            for g in schedule.scheduled_games
        ],
        byes=dict(sorted(schedule.byes.items())),
        fixed_weeks=sorted(schedule.fixed_weeks),
    )


def from_document(document: ScheduleDocument) -> Schedule:
    """
    Rebuild a Schedule from a document, checking every cross reference
    and every booking rule an edit would be held to.

    Raises:
        InvalidMutation: If the document references unknown teams,
            matchups or weeks, schedules a matchup twice, books a team
            twice in a week, or places a bye outside the window or over
            the per-week cap
    """
    rules = LeagueRules(**document.rules.model_dump())

    teams = [Team(**t.model_dump()) for t in document.teams]
    team_ids = {t.id for t in teams}
    if len(team_ids) != len(teams):
        raise InvalidMutation("Document lists a team more than once")

    matchups = []
    for item in document.matchups:
        try:
            category = Category(item.category)
        except ValueError as e:
            raise InvalidMutation(f"Matchup {item.id} has unknown category {item.category!r}") from e
        for team_id in (item.home, item.away):
            if team_id not in team_ids:
                raise InvalidMutation(f"Matchup {item.id} references unknown team {team_id}")
        matchup = Matchup(home=item.home, away=item.away, category=category)
        if matchup.id != item.id:
            raise InvalidMutation(f"Matchup id {item.id} does not match {matchup.id}")
        matchups.append(matchup)
    by_id = {m.id: m for m in matchups}
    if len(by_id) != len(matchups):
        raise InvalidMutation("Document lists a matchup more than once")

    schedule = Schedule(teams=teams, matchups=matchups, rules=rules, season_year=document.season_year)

    # Games and byes go through the editor so a loaded schedule obeys the
    # same booking rules as an edited one. Weeks are locked afterwards.
    scheduled = set()
    for item in document.games:
        matchup = by_id.get(item.matchup_id)
        if matchup is None:
            raise InvalidMutation(f"Game {item.id} references unknown matchup {item.matchup_id}")
        if not rules.has_week(item.week):
            raise InvalidMutation(f"Game {item.id} is in week {item.week}, outside the season")
        if matchup.id in scheduled:
            raise InvalidMutation(f"Matchup {matchup.id} is scheduled twice")
        scheduled.add(matchup.id)
        try:
            schedule = place_game(schedule, matchup.id, item.week)
        except InvalidMutation as e:
            raise InvalidMutation(f"Game {item.id}: {e}") from e
        if item.home_score is not None or item.away_score is not None:
            if item.home_score is None or item.away_score is None:
                raise InvalidMutation(f"Game {item.id} has an incomplete result")
            game = schedule.get_game_for_matchup(matchup.id)
            try:
                schedule = record_result(schedule, game.id, item.home_score, item.away_score)
            except InvalidMutation as e:
                raise InvalidMutation(f"Game {item.id}: {e}") from e

    for team_id, week in document.byes.items():
        if team_id not in team_ids:
            raise InvalidMutation(f"Bye references unknown team {team_id}")
        if not rules.has_week(week):
            raise InvalidMutation(f"Bye for {team_id} is in week {week}, outside the season")
        try:
            schedule = assign_bye(schedule, team_id, week)
        except InvalidMutation as e:
            raise InvalidMutation(f"Bye for {team_id}: {e}") from e

    for week in document.fixed_weeks:
        if not rules.has_week(week):
            raise InvalidMutation(f"Locked week {week} is outside the season")
        schedule.fixed_weeks.add(week)

    return schedule


def dumps(schedule: Schedule, indent: Optional[int] = 2) -> str:
    return to_document(schedule).model_dump_json(indent=indent)


def loads(text: str) -> Schedule:
    try:
        document = ScheduleDocument.model_validate_json(text)
    except ValidationError as e:
        raise InvalidMutation(f"Malformed schedule document: {e.error_count()} errors") from e
    return from_document(document)


def game_payload(game: Game) -> Dict:
    payload = {
        "id": game.id,
        "matchup_id": game.matchup.id,
        "week": game.week,
        "home_team": game.home,
        "away_team": game.away,
        "category": game.category.value,
    }
    if game.result is not None:
        payload["home_score"] = game.result.home_score
        payload["away_score"] = game.result.away_score
    return payload


def generation_payload(result) -> Dict:
    """Summary of a GenerationResult for API responses and task results."""
    payload = result.to_dict()
    payload["total_games"] = len(result.schedule.games) if result.schedule else 0
    payload["games"] = [game_payload(g) for g in result.schedule.scheduled_games] if result.schedule else []
    payload["byes"] = {b.team_id: b.week for b in result.schedule.get_byes()} if result.schedule else {}
    if result.validation is not None:
        payload["validation"] = {
            "is_valid": result.validation.is_valid,
            "hard_violations": len(result.validation.hard_constraint_violations),
            "soft_violations": len(result.validation.soft_constraint_violations),
            "total_penalty": result.validation.total_penalty_score,
        }
    return payload
