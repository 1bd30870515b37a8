"""
Tests for matchup pool generation.
"""

import sys
import os
from collections import Counter

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from schedulemaker.models import Category
from schedulemaker.core.exceptions import StructuralInfeasibility
from schedulemaker.services.matchup_generator import MatchupGenerator


def test_nfl_pool_counts(nfl_teams):
    """32 teams x 17 games / 2 = 272 matchups with exact per-team quotas."""
    print("Testing NFL matchup pool...")

    generator = MatchupGenerator(nfl_teams, 2025)
    matchups = generator.generate_matchups()
    assert len(matchups) == 272

    totals = Counter()
    per_category = Counter()
    home = Counter()
    for m in matchups:
        totals[m.home] += 1
        totals[m.away] += 1
        per_category[(m.home, m.category)] += 1
        per_category[(m.away, m.category)] += 1
        home[m.home] += 1

    for team in nfl_teams:
        assert totals[team.id] == 17
        assert per_category[(team.id, Category.IN_GROUP)] == 6
        assert per_category[(team.id, Category.CROSS_NEAR)] == 6
        assert per_category[(team.id, Category.CROSS_FAR)] == 5
        # NFC hosts the extra game in odd seasons
        assert home[team.id] == (9 if team.conference == "NFC" else 8)

    pairs = Counter(m.pair for m in matchups)
    assert max(pairs.values()) == 2
    assert all(m.category == Category.IN_GROUP for m in matchups if pairs[m.pair] == 2)

    print(f"[PASS] Generated {len(matchups)} matchups")


def test_rotation_for_one_team(nfl_teams):
    """The 2025 rotation for the first-place team of the AFC East."""
    print("Testing rotation...")

    matchups = MatchupGenerator(nfl_teams, 2025).generate_matchups()
    ids = {m.id for m in matchups}

    # Division rivals twice, once at each site
    assert {"MIA@BUF", "BUF@MIA"} <= ids
    # Same-place games inside the conference
    assert "KC@BUF" in ids
    assert "BUF@HOU" in ids
    # Extra same-place game against the other conference
    assert "BUF@LAR" in ids

    far = {m.get_opponent("BUF") for m in matchups if m.involves_team("BUF") and m.category == Category.CROSS_FAR}
    assert far == {"DET", "MIN", "GB", "CHI", "LAR"}

    print("[PASS] Rotation test passed")


def test_rotation_changes_between_seasons(nfl_teams):
    def far_opponents(year):
        matchups = MatchupGenerator(nfl_teams, year).generate_matchups()
        return {m.get_opponent("BUF") for m in matchups
                if m.involves_team("BUF") and m.category == Category.CROSS_FAR}

    assert far_opponents(2025) != far_opponents(2026)
    print("[PASS] Season rotation test passed")


def test_prior_standings_override(nfl_teams):
    """Swapping finishes swaps the same-place opponents."""
    print("Testing prior standings override...")

    standings = {team.id: team.prior_rank for team in nfl_teams}
    standings["BUF"], standings["MIA"] = 2, 1
    ids = {m.id for m in MatchupGenerator(nfl_teams, 2025, standings).generate_matchups()}

    assert "LAC@BUF" in ids
    assert "BUF@IND" in ids
    assert "BUF@SEA" in ids
    assert "KC@MIA" in ids

    print("[PASS] Prior standings override test passed")


def test_small_league_quotas(small_teams):
    generator = MatchupGenerator(small_teams, 2025)
    quotas = generator.get_quotas()
    assert quotas.games_per_team == 9
    assert quotas.per_category == {Category.IN_GROUP: 2, Category.CROSS_NEAR: 4, Category.CROSS_FAR: 3}

    matchups = generator.generate_matchups()
    assert len(matchups) == 16 * 9 // 2
    print("[PASS] Small league quotas test passed")


def test_balancing_pass_uses_fallback_partners(nfl_teams):
    """Every team gets exactly one extra game even when preferred partners collide."""
    print("Testing balancing pass fallback...")

    class CollidingGenerator(MatchupGenerator):
        def _preferred_extra_partner(self, team_id):
            return "PHI"

    matchups = CollidingGenerator(nfl_teams, 2025).generate_matchups()
    assert len(matchups) == 272

    totals = Counter()
    for m in matchups:
        totals[m.home] += 1
        totals[m.away] += 1
    assert set(totals.values()) == {17}
    assert len({m.id for m in matchups}) == 272

    print("[PASS] Balancing pass fallback test passed")


def test_invalid_league_shape(nfl_teams):
    print("Testing invalid league shape...")

    with pytest.raises(StructuralInfeasibility) as excinfo:
        MatchupGenerator(nfl_teams[:-1], 2025)
    assert excinfo.value.dimension == "LEAGUE_SHAPE"

    standings = {team.id: team.prior_rank for team in nfl_teams}
    standings["BUF"] = 2
    with pytest.raises(StructuralInfeasibility) as excinfo:
        MatchupGenerator(nfl_teams, 2025, standings)
    assert excinfo.value.dimension == "PRIOR_STANDINGS"

    print("[PASS] Invalid league shape test passed")
