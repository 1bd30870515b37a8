"""
Tests for schedule JSON documents.
"""

import sys
import os
import json

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from schedulemaker.core.exceptions import InvalidMutation
from schedulemaker.services.editor import assign_bye, place_game, record_result
from schedulemaker.services.feasibility import evaluate
from schedulemaker.services.generation import prepare_schedule
from schedulemaker.services.serialization import dumps, game_payload, loads


@pytest.fixture
def edited_schedule(nfl_teams):
    schedule = prepare_schedule(nfl_teams, season_year=2025, fixed_weeks={1: [("BUF", "MIA")]})
    schedule = place_game(schedule, "KC@BUF", 6)
    schedule = record_result(schedule, "W06-KC@BUF", 27, 24)
    return assign_bye(schedule, "BUF", 7)


def test_document_restores_schedule(edited_schedule):
    print("Testing schedule documents...")

    restored = loads(dumps(edited_schedule))

    assert restored.season_year == 2025
    assert restored.rules == edited_schedule.rules
    assert restored.teams == edited_schedule.teams
    assert restored.matchups == edited_schedule.matchups
    assert restored.games == edited_schedule.games
    assert restored.byes == {"BUF": 7}
    assert restored.fixed_weeks == {1}
    assert restored.get_game("W06-KC@BUF").result.away_score == 24
    assert evaluate(restored).to_json() == evaluate(edited_schedule).to_json()

    print("[PASS] Schedule document test passed")


def test_document_layout(edited_schedule):
    document = json.loads(dumps(edited_schedule))
    assert set(document) == {"season_year", "rules", "teams", "matchups", "games", "byes", "fixed_weeks"}
    assert [g["id"] for g in document["games"]] == ["W01-MIA@BUF", "W06-KC@BUF"]
    assert document["games"][0]["home_score"] is None
    assert document["rules"]["max_byes_per_week"] == 6


def test_dangling_references_are_rejected(edited_schedule):
    print("Testing dangling references...")

    document = json.loads(dumps(edited_schedule))
    document["games"][1]["matchup_id"] = "SF@BUF"
    with pytest.raises(InvalidMutation, match="unknown matchup"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    document["byes"]["XXX"] = 8
    with pytest.raises(InvalidMutation, match="unknown team"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    document["games"][1]["week"] = 25
    with pytest.raises(InvalidMutation, match="outside the season"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    document["games"].append(dict(document["games"][1], week=9))
    with pytest.raises(InvalidMutation, match="scheduled twice"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    document["games"][1]["away_score"] = None
    with pytest.raises(InvalidMutation, match="incomplete result"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    document["matchups"][0]["category"] = "exhibition"
    with pytest.raises(InvalidMutation, match="unknown category"):
        loads(json.dumps(document))

    print("[PASS] Dangling reference test passed")


def test_malformed_document():
    with pytest.raises(InvalidMutation, match="Malformed"):
        loads('{"season_year": "soon"}')


def test_game_payload(edited_schedule):
    payload = game_payload(edited_schedule.get_game("W06-KC@BUF"))
    assert payload == {
        "id": "W06-KC@BUF",
        "matchup_id": "KC@BUF",
        "week": 6,
        "home_team": "BUF",
        "away_team": "KC",
        "category": "cross_near",
        "home_score": 27,
        "away_score": 24,
    }


def test_booking_clashes_are_rejected(edited_schedule):
    """A document must obey the same booking rules as an edited schedule."""
    print("Testing booking clashes in documents...")

    # BUF already plays KC in week 6
    document = json.loads(dumps(edited_schedule))
    document["games"].append({"id": "W06-NYJ@BUF", "matchup_id": "NYJ@BUF", "week": 6})
    with pytest.raises(InvalidMutation, match="BUF already plays KC@BUF in week 6"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    document["byes"]["BUF"] = 6
    with pytest.raises(InvalidMutation, match="Bye for BUF: BUF already plays"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    document["byes"]["MIA"] = 2
    with pytest.raises(InvalidMutation, match="outside the bye window"):
        loads(json.dumps(document))

    document = json.loads(dumps(edited_schedule))
    for team_id in ("NYJ", "NE", "BAL", "PIT", "KC", "LAC", "DEN"):
        document["byes"][team_id] = 9
    with pytest.raises(InvalidMutation, match="already has 6 byes"):
        loads(json.dumps(document))

    print("[PASS] Booking clash test passed")
