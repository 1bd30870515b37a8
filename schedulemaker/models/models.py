"""
Data models for the League Schedule Maker.
Defines all data structures used throughout the application.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Set, Dict
from enum import Enum


class Category(Enum):
    IN_GROUP = "in_group"      # Same division
    CROSS_NEAR = "cross_near"  # Same conference, other division
    CROSS_FAR = "cross_far"    # Other conference


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    conference: str
    division: str
    prior_rank: int = 0  # Finish inside the division last season, 1 = first

    def __str__(self):
        return self.id


@dataclass(frozen=True)
class Matchup:
    home: str
    away: str
    category: Category

    @property
    def id(self) -> str:
        return f"{self.away}@{self.home}"

    @property
    def pair(self) -> tuple:
        """Unordered pair key shared by both directions of a rivalry."""
        return tuple(sorted((self.home, self.away)))

    def __str__(self):
        return self.id

    def involves_team(self, team_id: str) -> bool:
        return self.home == team_id or self.away == team_id

    def get_opponent(self, team_id: str) -> Optional[str]:
        if self.home == team_id:
            return self.away
        elif self.away == team_id:
            return self.home
        return None

    def is_home_game(self, team_id: str) -> bool:
        return self.home == team_id


@dataclass
class LeagueRules:
    total_weeks: int = 18
    games_per_team: int = 17
    bye_window_start: int = 5
    bye_window_end: int = 14
    max_byes_per_week: int = 6
    min_rematch_gap: int = 4
    max_cross_near_per_week: Optional[int] = None
    max_cross_far_per_week: Optional[int] = None
    max_consecutive_home: Optional[int] = None
    max_consecutive_away: Optional[int] = None

    @property
    def weeks(self) -> range:
        return range(1, self.total_weeks + 1)

    @property
    def bye_weeks(self) -> List[int]:
        return [w for w in self.weeks if self.is_bye_eligible(w)]

    def is_bye_eligible(self, week: int) -> bool:
        return self.bye_window_start <= week <= self.bye_window_end

    def has_week(self, week: int) -> bool:
        return 1 <= week <= self.total_weeks

    def category_cap(self, category: Category) -> Optional[int]:
        if category == Category.CROSS_NEAR:
            return self.max_cross_near_per_week
        if category == Category.CROSS_FAR:
            return self.max_cross_far_per_week
        return None

    def streak_limit(self, home: bool) -> Optional[int]:
        return self.max_consecutive_home if home else self.max_consecutive_away


@dataclass
class MatchupQuotas:
    """Required per-team counts a matchup pool must meet exactly."""
    games_per_team: int
    per_category: Dict[Category, int]
    home: Dict[str, int] = field(default_factory=dict)
    away: Dict[str, int] = field(default_factory=dict)

    def expected_total(self, team_count: int) -> int:
        return team_count * self.games_per_team // 2


@dataclass(frozen=True)
class Week:
    number: int
    fixed: bool = False
    bye_eligible: bool = False


@dataclass(frozen=True)
class GameResult:
    home_score: int
    away_score: int

    @property
    def is_tie(self) -> bool:
        return self.home_score == self.away_score


@dataclass(frozen=True)
class Game:
    matchup: Matchup
    week: int
    result: Optional[GameResult] = None

    @property
    def id(self) -> str:
        return f"W{self.week:02d}-{self.matchup.id}"

    @property
    def home(self) -> str:
        return self.matchup.home

    @property
    def away(self) -> str:
        return self.matchup.away

    @property
    def category(self) -> Category:
        return self.matchup.category

    def __str__(self):
        return f"{self.away} @ {self.home} in week {self.week}"

    def involves_team(self, team_id: str) -> bool:
        return self.matchup.involves_team(team_id)

    def get_opponent(self, team_id: str) -> Optional[str]:
        return self.matchup.get_opponent(team_id)

    def is_home_game(self, team_id: str) -> bool:
        return self.matchup.is_home_game(team_id)


@dataclass(frozen=True)
class Bye:
    team_id: str
    week: int


@dataclass
class Schedule:
    """
    All games and byes of one season together with the matchup pool they are
    drawn from. Games are keyed by matchup id, so a matchup can be scheduled
    at most once; byes hold explicit reservations (team id -> week).
    """
    teams: List[Team]
    matchups: List[Matchup]
    rules: LeagueRules
    season_year: int = 0
    games: Dict[str, Game] = field(default_factory=dict)
    byes: Dict[str, int] = field(default_factory=dict)
    fixed_weeks: Set[int] = field(default_factory=set)

    def __post_init__(self):
        self._teams_by_id = {team.id: team for team in self.teams}
        self._matchups_by_id = {matchup.id: matchup for matchup in self.matchups}

    def copy(self) -> "Schedule":
        """Shallow value copy; reference data is shared, games/byes are not."""
        return Schedule(
            teams=self.teams,
            matchups=self.matchups,
            rules=self.rules,
            season_year=self.season_year,
            games=dict(self.games),
            byes=dict(self.byes),
            fixed_weeks=set(self.fixed_weeks),
        )

    # Reference data

    def get_team(self, team_id: str) -> Optional[Team]:
        return self._teams_by_id.get(team_id)

    def get_matchup(self, matchup_id: str) -> Optional[Matchup]:
        return self._matchups_by_id.get(matchup_id)

    def get_weeks(self) -> List[Week]:
        return [
            Week(number=w, fixed=w in self.fixed_weeks, bye_eligible=self.rules.is_bye_eligible(w))
            for w in self.rules.weeks
        ]

    # Games

    def add_game(self, game: Game):
        self.games[game.matchup.id] = game

    def remove_game(self, matchup_id: str) -> Optional[Game]:
        return self.games.pop(matchup_id, None)

    def set_result(self, game: Game, result: GameResult):
        self.games[game.matchup.id] = replace(game, result=result)

    def get_game(self, game_id: str) -> Optional[Game]:
        for game in self.games.values():
            if game.id == game_id:
                return game
        return None

    def get_game_for_matchup(self, matchup_id: str) -> Optional[Game]:
        return self.games.get(matchup_id)

    @property
    def scheduled_games(self) -> List[Game]:
        return sorted(self.games.values(), key=lambda g: (g.week, g.matchup.id))

    def get_team_games(self, team_id: str) -> List[Game]:
        return sorted(
            (game for game in self.games.values() if game.involves_team(team_id)),
            key=lambda g: g.week,
        )

    def get_week_games(self, week: int) -> List[Game]:
        return sorted(
            (game for game in self.games.values() if game.week == week),
            key=lambda g: g.matchup.id,
        )

    def get_team_game_in_week(self, team_id: str, week: int) -> Optional[Game]:
        for game in self.games.values():
            if game.week == week and game.involves_team(team_id):
                return game
        return None

    def unscheduled_matchups(self) -> List[Matchup]:
        return sorted(
            (m for m in self.matchups if m.id not in self.games),
            key=lambda m: m.id,
        )

    def is_complete(self) -> bool:
        return len(self.games) == len(self.matchups)

    # Byes

    def bye_week(self, team_id: str) -> Optional[int]:
        """
        The team's bye: the explicit reservation if there is one, otherwise
        the single week left without a game once every game is placed.
        """
        if team_id in self.byes:
            return self.byes[team_id]
        played = {game.week for game in self.get_team_games(team_id)}
        if len(played) == self.rules.games_per_team:
            free = [w for w in self.rules.weeks if w not in played]
            if len(free) == 1:
                return free[0]
        return None

    def get_byes(self) -> List[Bye]:
        byes = []
        for team in self.teams:
            week = self.bye_week(team.id)
            if week is not None:
                byes.append(Bye(team_id=team.id, week=week))
        return sorted(byes, key=lambda b: (b.week, b.team_id))

    def byes_in_week(self, week: int) -> List[str]:
        return sorted(team_id for team_id, w in self.byes.items() if w == week)

    def is_team_busy(self, team_id: str, week: int) -> bool:
        if self.byes.get(team_id) == week:
            return True
        return self.get_team_game_in_week(team_id, week) is not None

    def lock_week(self, week: int):
        """
        Mark a week as pre-fixed. Teams without a game in a locked bye-window
        week are given their bye there.
        """
        self.fixed_weeks.add(week)
        if not self.rules.is_bye_eligible(week):
            return
        for team in self.teams:
            if team.id not in self.byes and not self.is_team_busy(team.id, week):
                self.byes[team.id] = week


@dataclass
class SchedulingConstraint:
    constraint_type: str
    severity: str
    description: str
    affected_teams: List[str] = field(default_factory=list)
    affected_games: List[Game] = field(default_factory=list)
    penalty_score: float = 0.0


@dataclass
class ScheduleValidationResult:
    is_valid: bool
    hard_constraint_violations: List[SchedulingConstraint] = field(default_factory=list)
    soft_constraint_violations: List[SchedulingConstraint] = field(default_factory=list)
    total_penalty_score: float = 0.0

    def add_violation(self, constraint: SchedulingConstraint):
        if constraint.severity == 'hard':
            self.hard_constraint_violations.append(constraint)
            self.is_valid = False
        else:
            self.soft_constraint_violations.append(constraint)
        self.total_penalty_score += constraint.penalty_score

    def violation_types(self) -> List[str]:
        return sorted({v.constraint_type for v in self.hard_constraint_violations})

    def get_summary(self) -> str:
        summary = f"Schedule Valid: {self.is_valid}\n"
        summary += f"Hard Violations: {len(self.hard_constraint_violations)}\n"
        summary += f"Soft Violations: {len(self.soft_constraint_violations)}\n"
        summary += f"Total Penalty Score: {self.total_penalty_score:.2f}\n"
        return summary


@dataclass
class TeamScheduleStats:
    team: Team
    total_games: int = 0
    home_games: int = 0
    away_games: int = 0
    bye_week: Optional[int] = None
    games_by_category: Dict[str, int] = field(default_factory=dict)
    weeks_played: List[int] = field(default_factory=list)
    opponents: List[str] = field(default_factory=list)

    def calculate_balance_score(self) -> float:
        if self.total_games == 0:
            return 0.0
        ideal_split = self.total_games / 2.0
        return abs(self.home_games - ideal_split) + abs(self.away_games - ideal_split)


@dataclass
class WeekScheduleStats:
    week: Week
    total_games: int = 0
    bye_teams: List[str] = field(default_factory=list)
    games_by_category: Dict[str, int] = field(default_factory=dict)
    open_slots: int = 0
