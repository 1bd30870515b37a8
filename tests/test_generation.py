"""
Tests for batch schedule generation.
"""

import sys
import os
from collections import Counter
from dataclasses import replace

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from schedulemaker.core.exceptions import StructuralInfeasibility
from schedulemaker.services.generation import build_fixed_games, generate_schedule
from schedulemaker.services.solver import FailureKind, SolveStatus


def test_full_league_generation(nfl_teams):
    """32 teams, 17 games, 18 weeks, byes in weeks 5-14 with at most 6 per week."""
    print("=" * 60)
    print("Testing full league generation...")
    print("=" * 60)

    result = generate_schedule(nfl_teams, season_year=2025, time_limit_seconds=120)

    assert result.success, result.message
    assert len(result.matchups) == 272
    schedule = result.schedule
    assert schedule.is_complete()
    assert len(schedule.games) == 272
    assert result.validation.is_valid

    byes = schedule.get_byes()
    assert sorted(b.team_id for b in byes) == sorted(t.id for t in nfl_teams)
    assert all(5 <= b.week <= 14 for b in byes)
    assert max(Counter(b.week for b in byes).values()) <= 6

    meetings = {}
    for game in schedule.scheduled_games:
        meetings.setdefault(game.matchup.pair, []).append(game.week)
    for weeks in meetings.values():
        if len(weeks) == 2:
            assert abs(weeks[1] - weeks[0]) >= 4

    print(f"[PASS] {len(schedule.games)} games by {result.method} solve in {result.generation_time:.1f}s")


def test_fixed_week_is_kept(small_teams, small_rules):
    print("Testing fixed weeks...")

    first = generate_schedule(small_teams, season_year=2025, rules=small_rules, time_limit_seconds=30)
    assert first.success
    week_one = [(g.home, g.away) for g in first.schedule.get_week_games(1)]
    assert len(week_one) == 8

    second = generate_schedule(small_teams, season_year=2025, rules=small_rules,
                               fixed_weeks={1: week_one}, time_limit_seconds=30)
    assert second.success, second.message
    assert second.schedule.fixed_weeks == {1}
    assert sorted((g.home, g.away) for g in second.schedule.get_week_games(1)) == sorted(week_one)

    print("[PASS] Fixed weeks test passed")


def test_fixed_pair_uses_pool_direction(nfl_schedule):
    matchups = nfl_schedule.matchups

    # The pool has KC at BUF; asking for BUF at KC resolves to the pool's direction
    games = build_fixed_games(matchups, {3: [("KC", "BUF")]})
    assert [g.matchup.id for g in games] == ["KC@BUF"]
    assert games[0].week == 3

    with pytest.raises(StructuralInfeasibility) as excinfo:
        build_fixed_games(matchups, {3: [("SF", "BUF")]})
    assert excinfo.value.dimension == "FIXED_WEEKS"
    print("[PASS] Fixed pair direction test passed")


def test_unknown_fixed_pair_fails_generation(nfl_teams):
    result = generate_schedule(nfl_teams, season_year=2025, fixed_weeks={1: [("SF", "BUF")]})
    assert result.status == SolveStatus.FAILED
    assert result.failure.kind == FailureKind.STRUCTURAL
    assert result.failure.dimensions == ["FIXED_WEEKS"]
    assert result.schedule is None
    print("[PASS] Unknown fixed pair test passed")


def test_rules_disagree_with_league_shape(small_teams, small_rules):
    rules = replace(small_rules, games_per_team=10, total_weeks=11)
    result = generate_schedule(small_teams, season_year=2025, rules=rules)

    assert not result.success
    assert result.failure.dimensions == ["TEAM_GAMES"]
    assert result.failure.demand == 10
    assert result.failure.supply == 9
    assert result.to_dict()["failure"]["shortfall"] == 1
    print("[PASS] Rules mismatch test passed")
