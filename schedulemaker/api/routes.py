"""
API routes for schedule generation and week-by-week editing sessions.
"""

import threading
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from celery.result import AsyncResult
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from schedulemaker.models import ConstraintReport, Schedule
from schedulemaker.core.celery_app import celery_app
from schedulemaker.core.exceptions import GenerationInProgress, InvalidMutation, StructuralInfeasibility
from schedulemaker.core.logging_config import get_logger
from schedulemaker.services.editor import ScheduleSession
from schedulemaker.services.feasibility import PlainNarrator
from schedulemaker.services.generation import generate_schedule as run_generation, prepare_schedule
from schedulemaker.services.league_reader import LeagueReader
from schedulemaker.services.serialization import game_payload, generation_payload, to_document
from schedulemaker.services.validator import ScheduleValidator
from schedulemaker.tasks.scheduler_tasks import generate_schedule_task

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["schedule"])

# Editing sessions live in process memory
_sessions: Dict[str, ScheduleSession] = {}
_sessions_lock = threading.Lock()


class ScheduleRequest(BaseModel):
    """Request model for schedule generation."""
    season_year: Optional[int] = None
    time_limit_seconds: Optional[float] = None
    use_exact: Optional[bool] = None


class SessionRequest(BaseModel):
    """Request model for opening an editing session."""
    season_year: Optional[int] = None
    fixed_weeks: Dict[int, List[List[str]]] = {}


class PlaceGameRequest(BaseModel):
    matchup_id: str
    week: int


class ByeRequest(BaseModel):
    team_id: str
    week: int


class ResultRequest(BaseModel):
    game_id: str
    home_score: int
    away_score: int


class ScheduleStats(BaseModel):
    """Statistics about a session's schedule."""
    total_teams: int
    total_games: int
    unscheduled_matchups: int
    games_by_week: Dict[int, int]
    teams: List[Dict]
    weeks: List[Dict]


def _get_session(session_id: str) -> ScheduleSession:
    with _sessions_lock:
        session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return session


def _session_payload(session_id: str, schedule: Schedule, report: ConstraintReport) -> Dict:
    return {
        "session_id": session_id,
        "total_games": len(schedule.games),
        "unscheduled_matchups": len(schedule.unscheduled_matchups()),
        "feasible": report.is_feasible,
        "report": report.to_dict(),
    }


def _mutate(session_id: str, action, *args) -> Dict:
    session = _get_session(session_id)
    try:
        schedule, report = action(session, *args)
    except InvalidMutation as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _session_payload(session_id, schedule, report)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@router.post("/schedule")
def generate_schedule(request: ScheduleRequest):
    """
    Generate a complete schedule for the bundled league.

    This endpoint:
    1. Loads teams, standings and fixed weeks
    2. Builds the matchup pool and assigns it to weeks
    3. Validates the schedule
    4. Returns the schedule data, or the reason generation failed
    """
    reader = LeagueReader()
    try:
        teams, standings, fixed_weeks = reader.load_all_data()
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=500, detail=f"Failed to load league data: {str(e)}")

    result = run_generation(
        teams,
        prior_standings=standings,
        fixed_weeks=fixed_weeks,
        season_year=request.season_year,
        time_limit_seconds=request.time_limit_seconds,
        use_exact=request.use_exact,
    )
    return generation_payload(result)


@router.post("/schedule/async")
async def generate_schedule_async(request: ScheduleRequest):
    """
    Start async schedule generation task.

    Returns:
        dict: Task ID for polling status
    """
    try:
        task = generate_schedule_task.delay(request.season_year, request.time_limit_seconds)
    except OSError as e:
        raise HTTPException(status_code=500, detail=f"Failed to start task: {str(e)}")

    return {
        "task_id": task.id,
        "status": "PENDING",
        "message": "Schedule generation started"
    }


@router.get("/schedule/status/{task_id}")
async def get_schedule_status(task_id: str):
    """
    Get status of async schedule generation task.

    Args:
        task_id: Celery task ID
    """
    task_result = AsyncResult(task_id, app=celery_app)

    if task_result.state == "PENDING":
        return {"task_id": task_id, "status": "PENDING", "message": "Task is waiting to start..."}
    if task_result.state == "PROGRESS":
        return {
            "task_id": task_id,
            "status": "PROGRESS",
            "message": task_result.info.get("status", "Processing...")
        }
    if task_result.state == "SUCCESS":
        return {"task_id": task_id, "status": "SUCCESS", "result": task_result.result}
    if task_result.state == "FAILURE":
        return {"task_id": task_id, "status": "FAILURE", "message": str(task_result.info)}
    return {"task_id": task_id, "status": task_result.state, "message": f"Task state: {task_result.state}"}


@router.post("/sessions")
def create_session(request: SessionRequest):
    """Open an editing session on an unscheduled season of the bundled league."""
    reader = LeagueReader()
    try:
        teams = reader.load_teams()
    except (OSError, ValueError) as e:
        raise HTTPException(status_code=500, detail=f"Failed to load league data: {str(e)}")

    fixed = {week: [(pair[0], pair[1]) for pair in pairs] for week, pairs in request.fixed_weeks.items()}
    try:
        schedule = prepare_schedule(teams, season_year=request.season_year, fixed_weeks=fixed)
    except StructuralInfeasibility as e:
        raise HTTPException(status_code=400, detail=str(e))

    session_id = uuid.uuid4().hex
    session = ScheduleSession(schedule, session_id=session_id)
    with _sessions_lock:
        _sessions[session_id] = session
    logger.info(f"Opened session {session_id} with {len(schedule.matchups)} matchups")
    return _session_payload(session_id, *session.snapshot())


@router.get("/sessions/{session_id}")
def get_session(session_id: str):
    """The session's full schedule document."""
    schedule, _ = _get_session(session_id).snapshot()
    document = to_document(schedule).model_dump()
    document["session_id"] = session_id
    document["unscheduled"] = [m.id for m in schedule.unscheduled_matchups()]
    return document


@router.get("/sessions/{session_id}/report")
def get_session_report(session_id: str, current_week: Optional[int] = None):
    session = _get_session(session_id)
    report = session.evaluate(current_week)
    payload = report.to_dict()
    payload["narration"] = PlainNarrator().narrate(report)
    return payload


@router.get("/sessions/{session_id}/stats", response_model=ScheduleStats)
def get_session_stats(session_id: str):
    """Per-team and per-week statistics, recomputed from the current schedule."""
    schedule, _ = _get_session(session_id).snapshot()
    validator = ScheduleValidator()

    teams = []
    for team in sorted(schedule.teams, key=lambda t: t.id):
        stats = validator.get_team_stats(team.id, schedule)
        teams.append({
            "team_id": team.id,
            "total_games": stats.total_games,
            "home_games": stats.home_games,
            "away_games": stats.away_games,
            "bye_week": stats.bye_week,
            "games_by_category": stats.games_by_category,
        })

    weeks = []
    for week in schedule.rules.weeks:
        stats = validator.get_week_stats(week, schedule)
        weeks.append({
            "week": week,
            "fixed": stats.week.fixed,
            "total_games": stats.total_games,
            "bye_teams": stats.bye_teams,
            "open_slots": stats.open_slots,
        })

    return ScheduleStats(
        total_teams=len(schedule.teams),
        total_games=len(schedule.games),
        unscheduled_matchups=len(schedule.unscheduled_matchups()),
        games_by_week={w["week"]: w["total_games"] for w in weeks},
        teams=teams,
        weeks=weeks,
    )


@router.post("/sessions/{session_id}/games")
def place_game(session_id: str, request: PlaceGameRequest):
    return _mutate(session_id, ScheduleSession.place_game, request.matchup_id, request.week)


@router.delete("/sessions/{session_id}/games/{game_id}")
def remove_game(session_id: str, game_id: str):
    return _mutate(session_id, ScheduleSession.remove_game, game_id)


@router.post("/sessions/{session_id}/byes")
def assign_bye(session_id: str, request: ByeRequest):
    return _mutate(session_id, ScheduleSession.assign_bye, request.team_id, request.week)


@router.delete("/sessions/{session_id}/byes/{team_id}/{week}")
def remove_bye(session_id: str, team_id: str, week: int):
    return _mutate(session_id, ScheduleSession.remove_bye, team_id, week)


@router.post("/sessions/{session_id}/results")
def record_result(session_id: str, request: ResultRequest):
    return _mutate(session_id, ScheduleSession.record_result, request.game_id,
                   request.home_score, request.away_score)


@router.post("/sessions/{session_id}/regenerate")
def regenerate_session(session_id: str, request: ScheduleRequest):
    """Fill the session with a generated schedule, keeping its locked weeks."""
    session = _get_session(session_id)
    try:
        result = session.regenerate(time_limit_seconds=request.time_limit_seconds, use_exact=request.use_exact)
    except GenerationInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))

    payload = generation_payload(result)
    payload["session_id"] = session_id
    return payload


@router.get("/sessions/{session_id}/games/{game_id}")
def get_game(session_id: str, game_id: str):
    schedule, _ = _get_session(session_id).snapshot()
    game = schedule.get_game(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail=f"Unknown game: {game_id}")
    return game_payload(game)
