"""
Tests for schedule validation on a hand-built four-team round robin.
"""

import sys
import os
from dataclasses import replace

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schedulemaker.models import Game, Schedule
from schedulemaker.services.validator import ScheduleValidator, consecutive_runs

# Week 1 and 4 full, one game with two byes in weeks 2 and 3
VALID_WEEKS = {"A@B": 1, "C@D": 1, "A@C": 2, "B@D": 3, "A@D": 4, "B@C": 4}


def build_schedule(mini_league, weeks):
    teams, matchups, rules = mini_league
    schedule = Schedule(teams=teams, matchups=matchups, rules=rules)
    for matchup in matchups:
        if matchup.id in weeks:
            schedule.add_game(Game(matchup=matchup, week=weeks[matchup.id]))
    return schedule


def test_valid_schedule(mini_league):
    """Test schedule validator."""
    print("Testing validator...")

    schedule = build_schedule(mini_league, VALID_WEEKS)
    result = ScheduleValidator().validate_schedule(schedule)

    assert result.is_valid, result.get_summary()
    assert schedule.bye_week("B") == 2
    assert schedule.bye_week("A") == 3

    print("[PASS] Validator test passed")


def test_unscheduled_and_double_booked(mini_league):
    print("Testing coverage and double booking...")

    weeks = dict(VALID_WEEKS)
    del weeks["B@C"]
    weeks["B@D"] = 1
    result = ScheduleValidator().validate_schedule(build_schedule(mini_league, weeks))

    types = result.violation_types()
    assert not result.is_valid
    assert "unscheduled_matchup" in types
    assert "team_double_booked" in types
    assert "team_game_count" in types

    print("[PASS] Coverage and double booking test passed")


def test_bye_outside_window(mini_league):
    print("Testing bye window...")

    # Everyone plays weeks 2 and 3 in full, so weeks 1 and 4 hold the byes
    weeks = {"A@B": 2, "C@D": 2, "A@C": 3, "B@D": 3, "A@D": 1, "B@C": 4}
    result = ScheduleValidator().validate_schedule(build_schedule(mini_league, weeks))

    assert "bye_outside_window" in result.violation_types()
    assert "week_capacity" in result.violation_types()

    print("[PASS] Bye window test passed")


def test_rematch_gap(small_schedule):
    print("Testing rematch gap...")

    schedule = small_schedule.copy()
    first, second = [m for m in schedule.matchups if m.pair == ("E11", "E12")]
    schedule.add_game(Game(matchup=first, week=3))
    schedule.add_game(Game(matchup=second, week=4))

    result = ScheduleValidator().validate_schedule(schedule, verbose=False)
    assert "rematch_gap" in result.violation_types()

    print("[PASS] Rematch gap test passed")


def test_home_away_streak(mini_league):
    teams, matchups, rules = mini_league
    rules = replace(rules, max_consecutive_away=1)
    # A is away in weeks 1 and 2
    result = ScheduleValidator().validate_schedule(build_schedule((teams, matchups, rules), VALID_WEEKS))

    assert "away_streak" in result.violation_types()
    print("[PASS] Home/away streak test passed")


def test_stats_and_report(mini_league):
    schedule = build_schedule(mini_league, VALID_WEEKS)
    validator = ScheduleValidator()

    stats = validator.get_team_stats("A", schedule)
    assert stats.total_games == 3
    assert stats.away_games == 3
    assert stats.bye_week == 3
    assert stats.weeks_played == [1, 2, 4]

    week = validator.get_week_stats(2, schedule)
    assert week.total_games == 1
    assert week.bye_teams == ["B", "D"]
    assert week.open_slots == 1

    report = validator.generate_schedule_report(schedule)
    assert "SCHEDULE REPORT" in report
    print("[PASS] Stats and report test passed")


def test_consecutive_runs():
    assert consecutive_runs([5, 1, 2, 3, 7, 6]) == [[1, 2, 3], [5, 6, 7]]
    assert consecutive_runs([]) == []
