"""
Derived view of a partial schedule, computed once per evaluation and shared
by every stage.
"""

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Set

from schedulemaker.models import Category, Matchup, Schedule

GAME = "game"
BYE = "bye"


class FeasibilityState:
    """
    Per-team and per-week bookkeeping for one schedule value:
    what each team is doing each week, what remains to be placed, and which
    weeks are still open for placement (not locked, not before the current week).
    """

    def __init__(self, schedule: Schedule, current_week: Optional[int] = None):
        self.schedule = schedule
        self.rules = schedule.rules
        self.teams = sorted(schedule.teams, key=lambda t: t.id)
        self.team_ids = [t.id for t in self.teams]
        self.league_size = len(self.teams)

        self.busy: Dict[str, Dict[int, str]] = {t: {} for t in self.team_ids}
        self.home_weeks: Dict[str, Set[int]] = defaultdict(set)
        self.away_weeks: Dict[str, Set[int]] = defaultdict(set)
        self.week_games = Counter()
        self.week_byes = Counter()
        self.category_week = Counter()
        self.pair_meetings: Dict[tuple, List[int]] = defaultdict(list)

        for game in schedule.games.values():
            self.busy[game.home][game.week] = GAME
            self.busy[game.away][game.week] = GAME
            self.home_weeks[game.home].add(game.week)
            self.away_weeks[game.away].add(game.week)
            self.week_games[game.week] += 1
            self.category_week[(game.category, game.week)] += 1
            self.pair_meetings[game.matchup.pair].append(game.week)

        for team_id, week in schedule.byes.items():
            self.busy[team_id][week] = BYE
            self.week_byes[week] += 1

        self.needs_bye: Set[str] = {t for t in self.team_ids if t not in schedule.byes}

        self.unplaced: List[Matchup] = schedule.unscheduled_matchups()
        self.remaining = Counter()
        self.remaining_home = Counter()
        self.remaining_away = Counter()
        self.remaining_by_category: Dict[Category, int] = Counter()
        self.pair_remaining: Dict[tuple, List[Matchup]] = defaultdict(list)
        for matchup in self.unplaced:
            self.remaining[matchup.home] += 1
            self.remaining[matchup.away] += 1
            self.remaining_home[matchup.home] += 1
            self.remaining_away[matchup.away] += 1
            self.remaining_by_category[matchup.category] += 1
            self.pair_remaining[matchup.pair].append(matchup)

        self.current_week = current_week if current_week is not None else self._first_incomplete_week()
        self.open_weeks: List[int] = [
            w for w in self.rules.weeks
            if w >= self.current_week and w not in schedule.fixed_weeks
        ]
        self.free_teams: Dict[int, List[str]] = {
            w: [t for t in self.team_ids if w not in self.busy[t]] for w in self.open_weeks
        }
        self.free_weeks: Dict[str, List[int]] = {
            t: [w for w in self.open_weeks if w not in self.busy[t]] for t in self.team_ids
        }

    def _first_incomplete_week(self) -> int:
        """First week in which some team has neither a game nor a bye."""
        for week in self.rules.weeks:
            if any(week not in self.busy[t] for t in self.team_ids):
                return week
        return self.rules.total_weeks + 1

    def is_free(self, team_id: str, week: int) -> bool:
        return week not in self.busy[team_id]

    def bye_room(self, week: int) -> int:
        if not self.rules.is_bye_eligible(week):
            return 0
        return max(0, self.rules.max_byes_per_week - self.week_byes[week])

    def is_legal(self, matchup: Matchup, week: int) -> bool:
        """
        Whether the matchup could be placed in the week right now: the week
        is open, both teams are free and no spacing, quota or streak rule
        would break.
        """
        if week not in self.free_teams:
            return False
        if not self.is_free(matchup.home, week) or not self.is_free(matchup.away, week):
            return False
        gap = self.rules.min_rematch_gap
        if any(abs(week - met) < gap for met in self.pair_meetings.get(matchup.pair, [])):
            return False
        cap = self.rules.category_cap(matchup.category)
        if cap is not None and self.category_week[(matchup.category, week)] >= cap:
            return False
        if self._extends_streak(self.home_weeks[matchup.home], week, self.rules.max_consecutive_home):
            return False
        if self._extends_streak(self.away_weeks[matchup.away], week, self.rules.max_consecutive_away):
            return False
        return True

    @staticmethod
    def _extends_streak(weeks: Set[int], week: int, limit: Optional[int]) -> bool:
        if limit is None:
            return False
        run = 1
        w = week - 1
        while w in weeks:
            run += 1
            w -= 1
        w = week + 1
        while w in weeks:
            run += 1
            w += 1
        return run > limit
