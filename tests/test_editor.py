"""
Tests for single-step schedule edits and editing sessions.
"""

import sys
import os
import threading

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from schedulemaker.models import Dimension
from schedulemaker.core.exceptions import GenerationInProgress, InvalidMutation
from schedulemaker.services.editor import (
    ScheduleSession, assign_bye, place_game, record_result, remove_bye, remove_game
)
from schedulemaker.services.feasibility import evaluate
from schedulemaker.services.generation import prepare_schedule


def test_place_and_remove_restores_report(nfl_schedule):
    """Removing a game puts the matchup back and the report matches the one before placement."""
    print("Testing place/remove round trip...")

    before = evaluate(nfl_schedule)
    placed = place_game(nfl_schedule, "MIA@BUF", 4)
    assert "MIA@BUF" not in {m.id for m in placed.unscheduled_matchups()}
    assert placed.get_game("W04-MIA@BUF") is not None
    assert nfl_schedule.get_game("W04-MIA@BUF") is None

    restored = remove_game(placed, "W04-MIA@BUF")
    assert "MIA@BUF" in {m.id for m in restored.unscheduled_matchups()}
    assert evaluate(restored).to_json() == before.to_json()

    print("[PASS] Place/remove round trip test passed")


def test_invalid_placements(nfl_schedule):
    print("Testing invalid placements...")

    schedule = place_game(nfl_schedule, "MIA@BUF", 4)

    with pytest.raises(InvalidMutation):
        place_game(schedule, "NOPE@BUF", 5)
    with pytest.raises(InvalidMutation):
        place_game(schedule, "NYJ@NE", 19)
    with pytest.raises(InvalidMutation, match="already scheduled"):
        place_game(schedule, "MIA@BUF", 6)
    with pytest.raises(InvalidMutation, match="already plays"):
        place_game(schedule, "NYJ@BUF", 4)
    with pytest.raises(InvalidMutation):
        remove_game(schedule, "W05-MIA@BUF")

    # The rejected edits left the value untouched
    assert len(schedule.games) == 1

    print("[PASS] Invalid placements test passed")


def test_bye_edits(nfl_schedule):
    print("Testing bye edits...")

    schedule = assign_bye(nfl_schedule, "BUF", 7)
    assert schedule.byes == {"BUF": 7}
    assert nfl_schedule.byes == {}
    assert evaluate(schedule).get(Dimension.BYE_CAPACITY).demand == 31

    with pytest.raises(InvalidMutation, match="outside the bye window"):
        assign_bye(nfl_schedule, "BUF", 2)
    with pytest.raises(InvalidMutation, match="already has its bye"):
        assign_bye(schedule, "BUF", 8)
    with pytest.raises(InvalidMutation, match="has its bye"):
        place_game(schedule, "MIA@BUF", 7)
    with pytest.raises(InvalidMutation, match="no bye"):
        remove_bye(schedule, "BUF", 8)
    with pytest.raises(InvalidMutation, match="Unknown team"):
        assign_bye(schedule, "XXX", 8)

    for team_id in ("MIA", "NYJ", "NE", "KC", "LAC"):
        schedule = assign_bye(schedule, team_id, 7)
    with pytest.raises(InvalidMutation, match="already has 6 byes"):
        assign_bye(schedule, "DEN", 7)

    cleared = remove_bye(schedule, "BUF", 7)
    assert "BUF" not in cleared.byes

    print("[PASS] Bye edits test passed")


def test_locked_weeks_reject_edits(nfl_teams):
    schedule = prepare_schedule(nfl_teams, season_year=2025, fixed_weeks={1: [("BUF", "MIA")]})
    assert schedule.fixed_weeks == {1}
    with pytest.raises(InvalidMutation, match="locked"):
        place_game(schedule, "NYJ@NE", 1)
    with pytest.raises(InvalidMutation, match="locked"):
        remove_game(schedule, "W01-MIA@BUF")
    print("[PASS] Locked week test passed")


def test_record_result(nfl_schedule):
    schedule = place_game(nfl_schedule, "MIA@BUF", 4)
    scored = record_result(schedule, "W04-MIA@BUF", 24, 17)
    assert scored.get_game("W04-MIA@BUF").result.home_score == 24
    assert schedule.get_game("W04-MIA@BUF").result is None

    with pytest.raises(InvalidMutation):
        record_result(schedule, "W04-MIA@BUF", -1, 3)
    print("[PASS] Record result test passed")


def test_session_threads_schedule(nfl_schedule):
    print("Testing editing session...")

    session = ScheduleSession(nfl_schedule, session_id="test")
    initial_report = session.report

    schedule, report = session.place_game("MIA@BUF", 4)
    assert session.schedule is schedule
    assert session.report is report
    assert len(schedule.games) == 1

    with pytest.raises(InvalidMutation):
        session.place_game("NYJ@BUF", 4)
    assert session.schedule is schedule

    session.assign_bye("BUF", 9)
    session.remove_bye("BUF", 9)
    session.record_result("W04-MIA@BUF", 21, 20)
    schedule, report = session.remove_game("W04-MIA@BUF")
    assert len(schedule.games) == 0
    assert report.to_json() == initial_report.to_json()

    later = session.evaluate(current_week=10)
    assert later.current_week == 10

    print("[PASS] Editing session test passed")


def test_session_regenerate_rejects_concurrent_run(small_schedule):
    session = ScheduleSession(small_schedule)
    session._generation_lock.acquire()
    try:
        with pytest.raises(GenerationInProgress):
            session.regenerate()
    finally:
        session._generation_lock.release()
    print("[PASS] Concurrent regeneration test passed")


def test_session_regenerate_cancelled_keeps_schedule(small_schedule):
    session = ScheduleSession(small_schedule)
    cancel = threading.Event()
    cancel.set()

    result = session.regenerate(cancel_event=cancel)
    assert not result.success
    assert session.schedule is small_schedule
    print("[PASS] Cancelled regeneration test passed")


def test_session_regenerate_fills_schedule(small_schedule):
    session = ScheduleSession(small_schedule)
    result = session.regenerate(time_limit_seconds=30)

    assert result.success
    assert session.schedule.is_complete()
    assert session.report.is_feasible
    print("[PASS] Regeneration test passed")
