"""
Tests for week assignment: exact solve, greedy fallback and the structural pre-check.
"""

import sys
import os
import threading
from collections import Counter
from dataclasses import replace

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schedulemaker.models import Schedule
from schedulemaker.services.solver import (
    AssignmentFormulation, FailureKind, ScheduleAssignmentSolver, SolveStatus
)
from schedulemaker.services.validator import ScheduleValidator


def check_solution(teams, matchups, rules, games):
    schedule = Schedule(teams=teams, matchups=matchups, rules=rules)
    for game in games:
        schedule.add_game(game)
    result = ScheduleValidator().validate_schedule(schedule, verbose=False)
    assert result.is_valid, result.violation_types()

    assert sorted(g.matchup.id for g in games) == sorted(m.id for m in matchups)
    booked = Counter()
    for game in games:
        booked[(game.home, game.week)] += 1
        booked[(game.away, game.week)] += 1
    assert max(booked.values()) == 1
    for bye in schedule.get_byes():
        assert rules.is_bye_eligible(bye.week)
    assert len(schedule.get_byes()) == len(teams)
    return schedule


def test_formulation_rows(small_schedule):
    print("Testing assignment formulation...")

    formulation = AssignmentFormulation(small_schedule.teams, small_schedule.matchups, small_schedule.rules)
    formulation.check_structure()
    sizes = formulation.family_sizes()

    assert sizes["matchup"] == 72
    assert sizes["team_total"] == 16
    assert sizes["week_games"] == 10
    # Only division rivals meet twice, one row per sliding window
    assert sizes["rematch"] == 8 * (10 - 2 + 1)
    assert "home_streak" not in sizes

    print("[PASS] Formulation test passed")


def test_small_league_exact_solve(small_schedule):
    print("Testing exact solve on 16 teams...")

    solver = ScheduleAssignmentSolver(
        small_schedule.teams, small_schedule.matchups, small_schedule.rules, time_limit_seconds=30
    )
    result = solver.solve()

    assert result.success, result.failure
    assert result.method in ("relaxation", "exact")
    assert result.residual == []
    check_solution(small_schedule.teams, small_schedule.matchups, small_schedule.rules, result.games)

    print(f"[PASS] Solved by {result.method} in {result.elapsed:.1f}s")


def test_greedy_fallback_completes_small_league(mini_league):
    print("Testing greedy fallback...")

    teams, matchups, rules = mini_league
    solver = ScheduleAssignmentSolver(teams, matchups, rules, use_relaxation=False, use_exact=False)
    result = solver.solve()

    assert result.status == SolveStatus.SUCCESS
    assert result.method == "greedy"
    schedule = check_solution(teams, matchups, rules, result.games)
    assert [b.week for b in schedule.get_byes()] == [2, 2, 3, 3]

    print("[PASS] Greedy fallback test passed")


def test_greedy_iteration_budget_reports_residual(mini_league):
    print("Testing greedy residual...")

    teams, matchups, rules = mini_league
    solver = ScheduleAssignmentSolver(teams, matchups, rules, use_relaxation=False, use_exact=False,
                                      max_iterations=1)
    result = solver.solve()

    assert result.status == SolveStatus.PARTIAL
    assert not result.success
    assert len(result.residual) == 5
    assert result.failure.kind == FailureKind.PARTIAL
    assert len(result.failure.residual) == 5
    assert result.failure.dimensions
    assert any("iteration budget" in d for d in result.diagnostics)

    print("[PASS] Greedy residual test passed")


def test_structural_precheck_rejects_bye_capacity(small_schedule):
    """16 teams need a bye but a two-week window with 2 byes per week holds 4."""
    print("Testing structural pre-check...")

    rules = replace(small_schedule.rules, bye_window_start=3, bye_window_end=4, max_byes_per_week=2)
    result = ScheduleAssignmentSolver(small_schedule.teams, small_schedule.matchups, rules).solve()

    assert result.status == SolveStatus.FAILED
    assert result.failure.kind == FailureKind.STRUCTURAL
    assert result.failure.dimensions == ["BYE_CAPACITY"]
    assert result.failure.demand == 16
    assert result.failure.supply == 4
    assert result.failure.shortfall == 12
    assert result.games == []

    print("[PASS] Structural pre-check test passed")


def test_structural_precheck_rejects_week_count(small_schedule):
    rules = replace(small_schedule.rules, total_weeks=11)
    result = ScheduleAssignmentSolver(small_schedule.teams, small_schedule.matchups, rules).solve()
    assert result.failure.dimensions == ["BYE_COUNT"]


def test_cancelled_solve(small_schedule):
    print("Testing cancellation...")

    cancel = threading.Event()
    cancel.set()
    result = ScheduleAssignmentSolver(
        small_schedule.teams, small_schedule.matchups, small_schedule.rules, cancel_event=cancel
    ).solve()

    assert result.status == SolveStatus.CANCELLED
    assert result.games == []
    assert result.failure.kind == FailureKind.CANCELLED

    print("[PASS] Cancellation test passed")


def test_greedy_restarts_place_leftovers_first(nfl_schedule):
    """Without the exact solve, later greedy passes never end up worse than the first."""
    print("Testing greedy restarts on 32 teams...")

    def greedy(max_restarts):
        return ScheduleAssignmentSolver(
            nfl_schedule.teams, nfl_schedule.matchups, nfl_schedule.rules,
            use_relaxation=False, use_exact=False, max_restarts=max_restarts,
        ).solve()

    single = greedy(0)
    restarted = greedy(5)
    again = greedy(5)

    assert single.method == restarted.method == "greedy"
    assert len(restarted.residual) <= len(single.residual)
    assert [g.id for g in restarted.games] == [g.id for g in again.games]
    if single.residual:
        assert any("passes" in d for d in restarted.diagnostics)
    if restarted.status == SolveStatus.PARTIAL:
        assert len(restarted.failure.residual) == len(restarted.residual)
    else:
        check_solution(nfl_schedule.teams, nfl_schedule.matchups, nfl_schedule.rules, restarted.games)

    print(f"[PASS] {len(single.residual)} leftovers after one pass, {len(restarted.residual)} after restarts")
