"""
Tests for the HTTP API: health, editing sessions and their error codes.
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient

from schedulemaker.main import app
from schedulemaker.models import Dimension


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session_id(client):
    response = client.post("/api/sessions", json={"season_year": 2025})
    assert response.status_code == 200
    assert response.json()["feasible"] is True
    return response.json()["session_id"]


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert client.get("/").json()["endpoints"]["sessions"] == "/api/sessions"


def test_open_session(client):
    print("Testing session creation...")

    response = client.post("/api/sessions", json={"season_year": 2025, "fixed_weeks": {"1": [["BUF", "MIA"]]}})
    assert response.status_code == 200
    body = response.json()
    assert body["total_games"] == 1
    assert body["unscheduled_matchups"] == 271
    # A locked week that leaves 30 teams idle costs each of them a needed week
    assert body["feasible"] is False
    quotas = {e["subject"]: e for e in body["report"]["entries"] if e["dimension"] == Dimension.TEAM_QUOTA.value}
    assert quotas["NYJ"]["evidence"] == "demand 18, supply 17"
    assert "BUF" not in quotas

    document = client.get(f"/api/sessions/{body['session_id']}").json()
    assert document["fixed_weeks"] == [1]
    assert len(document["unscheduled"]) == 271
    assert document["games"][0]["id"] == "W01-MIA@BUF"

    print("[PASS] Session creation test passed")


def test_unknown_fixed_pair_is_rejected(client):
    response = client.post("/api/sessions", json={"season_year": 2025, "fixed_weeks": {"1": [["SF", "BUF"]]}})
    assert response.status_code == 400
    assert "FIXED_WEEKS" in response.json()["detail"]


def test_place_and_remove_game(client, session_id):
    print("Testing game edits over HTTP...")

    response = client.post(f"/api/sessions/{session_id}/games", json={"matchup_id": "MIA@BUF", "week": 4})
    assert response.status_code == 200
    assert response.json()["total_games"] == 1

    game = client.get(f"/api/sessions/{session_id}/games/W04-MIA@BUF").json()
    assert game["home_team"] == "BUF"

    response = client.post(f"/api/sessions/{session_id}/games", json={"matchup_id": "NYJ@BUF", "week": 4})
    assert response.status_code == 400
    assert "already plays" in response.json()["detail"]

    response = client.post(f"/api/sessions/{session_id}/results",
                           json={"game_id": "W04-MIA@BUF", "home_score": 20, "away_score": 13})
    assert response.status_code == 200

    response = client.delete(f"/api/sessions/{session_id}/games/W04-MIA@BUF")
    assert response.status_code == 200
    assert response.json()["total_games"] == 0
    assert client.get(f"/api/sessions/{session_id}/games/W04-MIA@BUF").status_code == 404

    print("[PASS] Game edit test passed")


def test_bye_edits_and_report(client, session_id):
    response = client.post(f"/api/sessions/{session_id}/byes", json={"team_id": "BUF", "week": 7})
    assert response.status_code == 200

    report = client.get(f"/api/sessions/{session_id}/report").json()
    bye_capacity = [e for e in report["entries"] if e["dimension"] == Dimension.BYE_CAPACITY.value]
    assert bye_capacity[0]["demand"] == 31
    assert report["narration"]

    assert client.post(f"/api/sessions/{session_id}/byes", json={"team_id": "BUF", "week": 3}).status_code == 400
    assert client.delete(f"/api/sessions/{session_id}/byes/BUF/7").status_code == 200


def test_session_stats(client, session_id):
    client.post(f"/api/sessions/{session_id}/games", json={"matchup_id": "MIA@BUF", "week": 4})

    stats = client.get(f"/api/sessions/{session_id}/stats").json()
    assert stats["total_teams"] == 32
    assert stats["total_games"] == 1
    assert stats["unscheduled_matchups"] == 271
    assert stats["games_by_week"]["4"] == 1
    buf = next(t for t in stats["teams"] if t["team_id"] == "BUF")
    assert buf["home_games"] == 1
    assert len(stats["weeks"]) == 18


def test_unknown_session(client):
    assert client.get("/api/sessions/nope").status_code == 404
    assert client.post("/api/sessions/nope/games", json={"matchup_id": "MIA@BUF", "week": 4}).status_code == 404
