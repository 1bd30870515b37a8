"""Shared fixtures: the bundled 32-team league and a 16-team league with two teams per division."""
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from schedulemaker.models import Category, LeagueRules, Matchup, Team
from schedulemaker.services.generation import prepare_schedule
from schedulemaker.services.league_reader import LeagueReader

SEASON = 2025


def build_small_league():
    """Two conferences of four divisions, two teams each: 9 games over 10 weeks."""
    teams = []
    for conference in ("East", "West"):
        for division in range(1, 5):
            for rank in (1, 2):
                teams.append(Team(
                    id=f"{conference[0]}{division}{rank}",
                    name=f"{conference} {division}-{rank}",
                    conference=conference,
                    division=f"{conference} {division}",
                    prior_rank=rank,
                ))
    return teams


@pytest.fixture
def nfl_teams():
    return LeagueReader().load_teams()


@pytest.fixture
def nfl_schedule(nfl_teams):
    return prepare_schedule(nfl_teams, season_year=SEASON)


@pytest.fixture
def small_teams():
    return build_small_league()


@pytest.fixture
def small_rules():
    return LeagueRules(
        total_weeks=10,
        games_per_team=9,
        bye_window_start=3,
        bye_window_end=8,
        max_byes_per_week=4,
        min_rematch_gap=2,
    )


@pytest.fixture
def small_schedule(small_teams, small_rules):
    return prepare_schedule(small_teams, season_year=SEASON, rules=small_rules)


@pytest.fixture
def mini_league():
    """Four teams, one round robin: 3 games over 4 weeks, byes in weeks 2-3."""
    teams = [Team(id=t, name=f"Team {t}", conference="X", division="X 1", prior_rank=i + 1)
             for i, t in enumerate("ABCD")]
    matchups = [
        Matchup(home=home, away=away, category=Category.IN_GROUP)
        for away, home in (("A", "B"), ("A", "C"), ("A", "D"), ("B", "C"), ("B", "D"), ("C", "D"))
    ]
    rules = LeagueRules(
        total_weeks=4,
        games_per_team=3,
        bye_window_start=2,
        bye_window_end=3,
        max_byes_per_week=2,
        min_rematch_gap=1,
    )
    return teams, matchups, rules
