"""
Matchup generation for one season.

Derives the required pool of directed matchups from division membership,
the multi-season rotation rules and prior-season standings. The league is two
conferences of four divisions, every division holding the same even number
of teams.
"""

from collections import defaultdict, deque
from itertools import permutations
from typing import Dict, List, Optional

from schedulemaker.models import Category, Matchup, MatchupQuotas, Team
from schedulemaker.core.exceptions import StructuralInfeasibility
from schedulemaker.core.logging_config import get_logger
from schedulemaker.services.validator import ScheduleValidator

logger = get_logger(__name__)

# The three perfect pairings of four divisions; one is used per season (3-year cycle)
INTRA_CONFERENCE_PAIRINGS = (
    ((0, 1), (2, 3)),
    ((0, 2), (1, 3)),
    ((0, 3), (1, 2)),
)
DIVISIONS_PER_CONFERENCE = 4


class MatchupGenerator:
    """
    Builds the matchup pool:
      1. every division pair plays twice, once at each site
      2. one full series against a division of the same conference
      3. same-place games against the two remaining divisions of the conference
      4. one full series against a division of the other conference
      5. one extra same-place game against the other conference
    """

    def __init__(self, teams: List[Team], season_year: int, prior_standings: Optional[Dict[str, int]] = None):
        """
        Initialize the generator.

        Args:
            teams: All teams of the league
            season_year: Season being scheduled; selects the rotation
            prior_standings: Optional team id -> prior finish (1 = first) override
        """
        self.teams = list(teams)
        self.season_year = season_year
        self.prior_standings = dict(prior_standings or {})

        self._team_by_id = {team.id: team for team in self.teams}
        self._conferences: List[str] = []
        self._divisions: Dict[str, List[str]] = {}
        self._members: Dict[str, List[str]] = {}
        self._division_size = 0

        self._matchups: List[Matchup] = []
        self._ids = set()
        self._opponents = defaultdict(set)
        self._counts = defaultdict(int)

        self._build_structure()

    # League shape

    def _rank(self, team: Team) -> int:
        return int(self.prior_standings.get(team.id, team.prior_rank))

    def _build_structure(self):
        conferences = sorted({team.conference for team in self.teams})
        if len(conferences) != 2:
            raise StructuralInfeasibility(
                "LEAGUE_SHAPE", "league must have exactly two conferences",
                demand=2, supply=len(conferences),
            )
        self._conferences = conferences

        members = defaultdict(list)
        for team in self.teams:
            members[team.division].append(team)

        for conference in conferences:
            divisions = sorted({t.division for t in self.teams if t.conference == conference})
            if len(divisions) != DIVISIONS_PER_CONFERENCE:
                raise StructuralInfeasibility(
                    "LEAGUE_SHAPE", f"{conference} must have {DIVISIONS_PER_CONFERENCE} divisions",
                    demand=DIVISIONS_PER_CONFERENCE, supply=len(divisions),
                )
            self._divisions[conference] = divisions

        sizes = {len(group) for group in members.values()}
        if len(sizes) != 1:
            raise StructuralInfeasibility("LEAGUE_SHAPE", "all divisions must have the same number of teams")
        size = sizes.pop()
        if size < 2 or size % 2:
            raise StructuralInfeasibility("LEAGUE_SHAPE", f"division size must be even, got {size}")
        self._division_size = size

        for division, group in members.items():
            ranked = sorted(group, key=lambda t: (self._rank(t), t.id))
            ranks = [self._rank(t) for t in ranked]
            if ranks != list(range(1, size + 1)):
                raise StructuralInfeasibility(
                    "PRIOR_STANDINGS", f"{division} ranks must be 1..{size}, got {ranks}"
                )
            self._members[division] = [t.id for t in ranked]

    def get_quotas(self) -> MatchupQuotas:
        """
        Declared per-team requirements implied by the league shape.

        Returns:
            MatchupQuotas with total, per-category, home and away counts
        """
        n = self._division_size
        per_category = {
            Category.IN_GROUP: 2 * (n - 1),
            Category.CROSS_NEAR: n + 2,
            Category.CROSS_FAR: n + 1,
        }
        host_conference = self._extra_game_host()
        # Division home games + half of each series + one same-place + maybe the extra game
        base_home = (n - 1) + n // 2 + 1 + n // 2
        games_per_team = sum(per_category.values())
        home, away = {}, {}
        for team in self.teams:
            home[team.id] = base_home + (1 if team.conference == host_conference else 0)
            away[team.id] = games_per_team - home[team.id]
        return MatchupQuotas(games_per_team=games_per_team, per_category=per_category, home=home, away=away)

    # Generation

    def generate_matchups(self) -> List[Matchup]:
        """
        Generate and validate the season's matchup pool.

        Returns:
            List of matchups sorted by id

        Raises:
            StructuralInfeasibility: If the pool cannot meet every quota
        """
        self._matchups, self._ids = [], set()
        self._opponents, self._counts = defaultdict(set), defaultdict(int)

        self._add_division_games()
        self._add_intra_conference_games()
        self._add_inter_conference_games()
        self._add_extra_games()

        quotas = self.get_quotas()
        result = ScheduleValidator().validate_matchup_pool(self._matchups, self.teams, quotas)
        if not result.is_valid:
            first = result.hard_constraint_violations[0]
            raise StructuralInfeasibility(
                "MATCHUP_POOL",
                f"{len(result.hard_constraint_violations)} quota violations, first: {first.description}",
            )

        logger.info(
            f"Generated {len(self._matchups)} matchups for {len(self.teams)} teams "
            f"(season {self.season_year}, {quotas.games_per_team} games each)"
        )
        return sorted(self._matchups, key=lambda m: m.id)

    def _add(self, home: str, away: str, category: Category):
        matchup = Matchup(home=home, away=away, category=category)
        if matchup.id in self._ids:
            raise StructuralInfeasibility("MATCHUP_POOL", f"duplicate matchup {matchup.id}")
        self._ids.add(matchup.id)
        self._matchups.append(matchup)
        self._opponents[home].add(away)
        self._opponents[away].add(home)
        self._counts[home] += 1
        self._counts[away] += 1

    def _add_division_games(self):
        for members in self._members.values():
            for home, away in permutations(members, 2):
                self._add(home, away, Category.IN_GROUP)

    def _add_series(self, first_division: str, second_division: str, category: Category):
        """Every team of one division against every team of another, split evenly home/away."""
        for i, first in enumerate(self._members[first_division]):
            for j, second in enumerate(self._members[second_division]):
                if (i + j + self.season_year) % 2 == 0:
                    self._add(first, second, category)
                else:
                    self._add(second, first, category)

    def _add_same_place(self, host_division: str, visiting_division: str, category: Category):
        for host, visitor in zip(self._members[host_division], self._members[visiting_division]):
            self._add(host, visitor, category)

    def _add_intra_conference_games(self):
        (a, b), (c, d) = INTRA_CONFERENCE_PAIRINGS[self.season_year % 3]
        # Non-partner divisions form a 4-cycle; orienting it gives each division one host and one visit
        cycle = [(a, c), (c, b), (b, d), (d, a)]
        if (self.season_year // 3) % 2:
            cycle = [(visit, host) for host, visit in cycle]

        for conference in self._conferences:
            divisions = self._divisions[conference]
            for first, second in ((a, b), (c, d)):
                self._add_series(divisions[first], divisions[second], Category.CROSS_NEAR)
            for host, visit in cycle:
                self._add_same_place(divisions[host], divisions[visit], Category.CROSS_NEAR)

    def _add_inter_conference_games(self):
        first, second = self._conferences
        for i, division in enumerate(self._divisions[first]):
            opponent = self._divisions[second][(i + self.season_year) % DIVISIONS_PER_CONFERENCE]
            self._add_series(division, opponent, Category.CROSS_FAR)

    # Balancing pass

    def _extra_game_host(self) -> str:
        return self._conferences[self.season_year % 2]

    def _locate(self, team_id: str):
        team = self._team_by_id[team_id]
        conference_index = self._conferences.index(team.conference)
        division_index = self._divisions[team.conference].index(team.division)
        rank_index = self._members[team.division].index(team_id)
        return conference_index, division_index, rank_index

    def _preferred_extra_partner(self, team_id: str) -> str:
        conference_index, division_index, rank_index = self._locate(team_id)
        offset = self.season_year + 2
        if conference_index == 0:
            target = (division_index + offset) % DIVISIONS_PER_CONFERENCE
        else:
            target = (division_index - offset) % DIVISIONS_PER_CONFERENCE
        other = self._conferences[1 - conference_index]
        return self._members[self._divisions[other][target]][rank_index]

    def _add_extra_games(self):
        """
        Pair every team still one game short. Both participants leave the
        queue; when the preferred same-place partner is unavailable the first
        queued team of the other conference that is not already an opponent
        is used instead.
        """
        target = self.get_quotas().games_per_team
        queue = deque()
        for conference in self._conferences:
            for division in self._divisions[conference]:
                for team_id in self._members[division]:
                    missing = target - self._counts[team_id]
                    if missing != 1:
                        raise StructuralInfeasibility(
                            "EXTRA_GAME", f"{team_id} is {missing} games short before the extra game",
                            demand=target, supply=self._counts[team_id],
                        )
                    queue.append(team_id)

        pending = set(queue)
        host_conference = self._extra_game_host()
        fallbacks = 0

        while queue:
            team_id = queue.popleft()
            if team_id not in pending:
                continue
            pending.discard(team_id)
            conference = self._team_by_id[team_id].conference

            partner = self._preferred_extra_partner(team_id)
            if partner not in pending or partner in self._opponents[team_id]:
                partner = next(
                    (
                        candidate for candidate in queue
                        if candidate in pending
                        and self._team_by_id[candidate].conference != conference
                        and candidate not in self._opponents[team_id]
                    ),
                    None,
                )
                if partner is None:
                    raise StructuralInfeasibility(
                        "EXTRA_GAME", f"no eligible extra-game opponent left for {team_id}",
                        demand=len(pending) + 1, supply=len(pending),
                    )
                fallbacks += 1
                logger.warning(f"Extra game for {team_id} uses fallback opponent {partner}")

            pending.discard(partner)
            if conference == host_conference:
                self._add(team_id, partner, Category.CROSS_FAR)
            else:
                self._add(partner, team_id, Category.CROSS_FAR)

        if fallbacks:
            logger.info(f"Balancing pass paired {fallbacks} teams outside their preferred rotation")
