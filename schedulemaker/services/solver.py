"""
Week assignment for a matchup pool.

Maps every matchup to exactly one week. The model is built once as a list of
linear rows over 0/1 variables (one per matchup and eligible week) and is
handed to a chain of strategies:

  1. the continuous relaxation (GLOP), accepted when it lands on an integral point
  2. an exact assignment solve (CP-SAT) bounded by the time budget
  3. a deterministic greedy pass that always terminates

Every produced schedule is re-validated before it is reported as a success.
"""

import math
import threading
import time
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from ortools.linear_solver import pywraplp
from ortools.sat.python import cp_model

from schedulemaker.models import Category, Game, LeagueRules, Matchup, Schedule, Team
from schedulemaker.core.config import (
    CATEGORY_PRIORITY, GREEDY_MAX_ITERATIONS, GREEDY_MAX_RESTARTS, SOLVER_NUM_WORKERS,
    SOLVER_TIME_LIMIT_SECONDS, USE_EXACT_SOLVER
)
from schedulemaker.core.exceptions import StructuralInfeasibility, SolverDegenerate
from schedulemaker.core.logging_config import get_logger, log_banner
from schedulemaker.services.validator import ScheduleValidator

logger = get_logger(__name__)

EPSILON = 1e-6


class SolveStatus(Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    CANCELLED = "cancelled"


class FailureKind:
    STRUCTURAL = "structural_infeasibility"
    PARTIAL = "partial_residual"
    CANCELLED = "cancelled"


@dataclass
class FailureReport:
    kind: str
    dimensions: List[str]
    message: str
    demand: int = 0
    supply: int = 0
    residual: List[str] = field(default_factory=list)

    @property
    def shortfall(self) -> int:
        return max(0, self.demand - self.supply)

    def to_dict(self) -> Dict:
        return {
            "kind": self.kind,
            "dimensions": list(self.dimensions),
            "message": self.message,
            "demand": self.demand,
            "supply": self.supply,
            "shortfall": self.shortfall,
            "residual": list(self.residual),
        }

    @classmethod
    def from_structural(cls, error: StructuralInfeasibility) -> "FailureReport":
        return cls(
            kind=FailureKind.STRUCTURAL,
            dimensions=[error.dimension],
            message=str(error),
            demand=error.demand,
            supply=error.supply,
        )


@dataclass
class SolverResult:
    status: SolveStatus
    method: Optional[str] = None
    games: List[Game] = field(default_factory=list)
    residual: List[Matchup] = field(default_factory=list)
    failure: Optional[FailureReport] = None
    diagnostics: List[str] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def success(self) -> bool:
        return self.status == SolveStatus.SUCCESS


@dataclass
class LinearRow:
    family: str
    name: str
    variables: List[int]
    lower: int
    upper: int


class AssignmentFormulation:
    """
    0/1 variables x[m, w] for every open matchup m and eligible week w.

    Row families:
      matchup       each matchup exactly once
      team_week     a team plays at most once per week
      team_total    a team plays its remaining required games
      week_games    N/2 games outside the bye window, ceil((N-K)/2)..N/2 inside
      rematch       per repeated pair, at most one meeting in any gap-long window
      category      per-week cap on cross-conference / cross-division games
      home_streak   at most s home games in any s+1 consecutive weeks
      away_streak   same for away games
    """

    def __init__(self, teams: List[Team], matchups: List[Matchup], rules: LeagueRules,
                 fixed_games: Optional[List[Game]] = None, locked_weeks: Optional[Set[int]] = None):
        self.teams = sorted(teams, key=lambda t: t.id)
        self.team_ids = [t.id for t in self.teams]
        self.rules = rules
        self.matchups = list(matchups)
        self.fixed_games = sorted(fixed_games or [], key=lambda g: (g.week, g.matchup.id))
        self.locked_weeks = set(locked_weeks or set()) | {g.week for g in self.fixed_games}

        fixed_ids = {g.matchup.id for g in self.fixed_games}
        self.open_matchups = sorted((m for m in self.matchups if m.id not in fixed_ids), key=lambda m: m.id)
        self.open_weeks = [w for w in rules.weeks if w not in self.locked_weeks]
        self.league_size = len(self.teams)
        self.week_capacity = self.league_size // 2

        self._index_fixed_games()

        self.variables: List[Tuple[int, int]] = []
        self.rows: List[LinearRow] = []
        self.unsatisfiable_rows: List[str] = []
        self._build_variables()
        self._build_rows()

    # Fixed games

    def _index_fixed_games(self):
        self.fixed_busy = defaultdict(set)
        self.fixed_home_weeks = defaultdict(set)
        self.fixed_away_weeks = defaultdict(set)
        self.fixed_pair_weeks = defaultdict(list)
        self.fixed_count = Counter()
        self.fixed_week_games = Counter()
        for game in self.fixed_games:
            self.fixed_busy[game.home].add(game.week)
            self.fixed_busy[game.away].add(game.week)
            self.fixed_home_weeks[game.home].add(game.week)
            self.fixed_away_weeks[game.away].add(game.week)
            self.fixed_pair_weeks[game.matchup.pair].append(game.week)
            self.fixed_count[game.home] += 1
            self.fixed_count[game.away] += 1
            self.fixed_week_games[game.week] += 1

    def fixed_bye_week(self, team_id: str) -> Optional[int]:
        """Locked week in which the team is idle, which makes it the team's bye."""
        idle = [w for w in sorted(self.locked_weeks) if w not in self.fixed_busy[team_id]]
        return idle[0] if idle else None

    # Variables and rows

    def eligible_weeks(self, matchup: Matchup) -> List[int]:
        return [
            w for w in self.open_weeks
            if w not in self.fixed_busy[matchup.home] and w not in self.fixed_busy[matchup.away]
        ]

    def _build_variables(self):
        self.vars_by_matchup = defaultdict(list)
        self.vars_by_team = defaultdict(list)
        self.vars_by_team_week = defaultdict(list)
        self.vars_by_week = defaultdict(list)
        self.vars_by_category_week = defaultdict(list)
        self.vars_by_pair = defaultdict(list)
        self.home_vars = defaultdict(list)
        self.away_vars = defaultdict(list)

        for mi, matchup in enumerate(self.open_matchups):
            for week in self.eligible_weeks(matchup):
                index = len(self.variables)
                self.variables.append((mi, week))
                self.vars_by_matchup[mi].append(index)
                self.vars_by_week[week].append(index)
                self.vars_by_category_week[(matchup.category, week)].append(index)
                self.vars_by_pair[matchup.pair].append(index)
                for team_id in (matchup.home, matchup.away):
                    self.vars_by_team[team_id].append(index)
                    self.vars_by_team_week[(team_id, week)].append(index)
                self.home_vars[(matchup.home, week)].append(index)
                self.away_vars[(matchup.away, week)].append(index)

    def _add_row(self, family: str, name: str, variables: List[int], lower: int, upper: int):
        if not variables:
            if lower > 0:
                self.unsatisfiable_rows.append(f"{family} {name}")
            return
        self.rows.append(LinearRow(family=family, name=name, variables=variables, lower=lower, upper=upper))

    def _build_rows(self):
        rules = self.rules

        for mi, matchup in enumerate(self.open_matchups):
            self._add_row("matchup", matchup.id, self.vars_by_matchup[mi], 1, 1)

        for team_id in self.team_ids:
            for week in self.open_weeks:
                variables = self.vars_by_team_week.get((team_id, week), [])
                if len(variables) > 1:
                    self._add_row("team_week", f"{team_id}:w{week}", variables, 0, 1)

            need = rules.games_per_team - self.fixed_count[team_id]
            self._add_row("team_total", team_id, self.vars_by_team[team_id], need, need)

        low_in_window = max(0, math.ceil((self.league_size - rules.max_byes_per_week) / 2))
        for week in self.open_weeks:
            variables = self.vars_by_week.get(week, [])
            if rules.is_bye_eligible(week):
                self._add_row("week_games", f"w{week}", variables, low_in_window, self.week_capacity)
            else:
                self._add_row("week_games", f"w{week}", variables, self.week_capacity, self.week_capacity)

        self._build_rematch_rows()

        for category in (Category.CROSS_NEAR, Category.CROSS_FAR):
            cap = rules.category_cap(category)
            if cap is None:
                continue
            for week in self.open_weeks:
                variables = self.vars_by_category_week.get((category, week), [])
                if len(variables) > cap:
                    self._add_row("category", f"{category.value}:w{week}", variables, 0, cap)

        for home in (True, False):
            self._build_streak_rows(home)

    def _build_rematch_rows(self):
        """
        Only pairs that meet more than once get rows, one per sliding window
        of `min_rematch_gap` weeks, so the row count grows with pairs x weeks.
        """
        gap = self.rules.min_rematch_gap
        if gap <= 1:
            return
        meetings = Counter(m.pair for m in self.matchups)
        for pair in sorted(p for p, count in meetings.items() if count > 1):
            pair_vars = self.vars_by_pair.get(pair, [])
            fixed_weeks = self.fixed_pair_weeks.get(pair, [])
            for start in range(1, self.rules.total_weeks - gap + 2):
                window = range(start, start + gap)
                variables = [v for v in pair_vars if self.variables[v][1] in window]
                constant = sum(1 for w in fixed_weeks if w in window)
                if variables and len(variables) + constant > 1:
                    self._add_row("rematch", f"{pair[0]}:{pair[1]}:w{start}", variables, 0, max(0, 1 - constant))

    def _build_streak_rows(self, home: bool):
        limit = self.rules.streak_limit(home)
        if limit is None:
            return
        family = "home_streak" if home else "away_streak"
        by_team_week = self.home_vars if home else self.away_vars
        fixed = self.fixed_home_weeks if home else self.fixed_away_weeks
        for team_id in self.team_ids:
            for start in range(1, self.rules.total_weeks - limit + 1):
                window = range(start, start + limit + 1)
                variables = [v for w in window for v in by_team_week.get((team_id, w), [])]
                constant = sum(1 for w in window if w in fixed[team_id])
                if variables and len(variables) + constant > limit:
                    self._add_row(family, f"{team_id}:w{start}", variables, 0, max(0, limit - constant))

    def costs(self) -> List[float]:
        """Mild preference for division games late in the season."""
        total = self.rules.total_weeks
        costs = []
        for mi, week in self.variables:
            cost = 1.0
            if self.open_matchups[mi].category == Category.IN_GROUP:
                cost += (total - week) / total
            costs.append(cost)
        return costs

    def games_for(self, chosen: List[int]) -> List[Game]:
        games = list(self.fixed_games)
        for index in chosen:
            mi, week = self.variables[index]
            games.append(Game(matchup=self.open_matchups[mi], week=week))
        return sorted(games, key=lambda g: (g.week, g.matchup.id))

    def family_sizes(self) -> Dict[str, int]:
        return dict(Counter(row.family for row in self.rows))

    # Pre-check

    def check_structure(self):
        """
        Counting checks that prove the inputs can never be scheduled.

        Raises:
            StructuralInfeasibility: On the first impossible dimension
        """
        rules = self.rules
        n = self.league_size

        if n % 2:
            raise StructuralInfeasibility("LEAGUE_SIZE", "league size must be even", demand=n + 1, supply=n)
        if rules.total_weeks - rules.games_per_team != 1:
            raise StructuralInfeasibility(
                "BYE_COUNT", "every team needs exactly one bye, so weeks must equal games + 1",
                demand=rules.games_per_team + 1, supply=rules.total_weeks,
            )

        pool_counts = Counter()
        for matchup in self.matchups:
            pool_counts[matchup.home] += 1
            pool_counts[matchup.away] += 1
        for team_id in self.team_ids:
            if pool_counts[team_id] != rules.games_per_team:
                raise StructuralInfeasibility(
                    "TEAM_GAMES", f"{team_id} has {pool_counts[team_id]} matchups in the pool",
                    demand=rules.games_per_team, supply=pool_counts[team_id],
                )

        for week in sorted(self.locked_weeks):
            idle = n - 2 * self.fixed_week_games[week]
            allowed = rules.max_byes_per_week if rules.is_bye_eligible(week) else 0
            if idle > allowed:
                raise StructuralInfeasibility(
                    "LOCKED_WEEK", f"locked week {week} leaves {idle} teams idle",
                    demand=idle, supply=allowed,
                )

        for team_id in self.team_ids:
            idle_locked = [w for w in self.locked_weeks if w not in self.fixed_busy[team_id]]
            if len(idle_locked) > 1:
                raise StructuralInfeasibility(
                    "BYE_COUNT", f"{team_id} is idle in locked weeks {sorted(idle_locked)}",
                    demand=1, supply=len(idle_locked),
                )

        for pair, weeks in sorted(self.fixed_pair_weeks.items()):
            weeks = sorted(weeks)
            for first, second in zip(weeks, weeks[1:]):
                if second - first < rules.min_rematch_gap:
                    raise StructuralInfeasibility(
                        "REMATCH_GAP", f"fixed meetings of {pair[0]} and {pair[1]} are {second - first} weeks apart",
                        demand=rules.min_rematch_gap, supply=second - first,
                    )

        demand = len(self.open_matchups)
        supply = self.week_capacity * len(self.open_weeks)
        if demand > supply:
            raise StructuralInfeasibility(
                "TOTAL_CAPACITY", "more games than open week slots", demand=demand, supply=supply,
            )

        byes_needed = sum(1 for team_id in self.team_ids if self.fixed_bye_week(team_id) is None)
        bye_supply = rules.max_byes_per_week * sum(1 for w in self.open_weeks if rules.is_bye_eligible(w))
        if byes_needed > bye_supply:
            raise StructuralInfeasibility(
                "BYE_CAPACITY", "more teams need a bye than the bye window can hold",
                demand=byes_needed, supply=bye_supply,
            )

        for mi, matchup in enumerate(self.open_matchups):
            if not self.vars_by_matchup[mi]:
                raise StructuralInfeasibility(
                    "MATCHUP_WEEKS", f"{matchup.id} has no week left where both teams are free",
                    demand=1, supply=0,
                )

        if self.unsatisfiable_rows:
            raise StructuralInfeasibility(
                "FORMULATION", f"no variables left for {self.unsatisfiable_rows[0]}",
                demand=len(self.unsatisfiable_rows), supply=0,
            )


@dataclass
class GreedyPass:
    """Bookings and outcome of one greedy pass."""
    unplaced: List[Matchup]
    placed: List[Game] = field(default_factory=list)
    busy: Dict[str, Set[int]] = field(default_factory=lambda: defaultdict(set))
    home_weeks: Dict[str, Set[int]] = field(default_factory=lambda: defaultdict(set))
    away_weeks: Dict[str, Set[int]] = field(default_factory=lambda: defaultdict(set))
    meetings: Dict[tuple, List[int]] = field(default_factory=lambda: defaultdict(list))
    week_games: Counter = field(default_factory=Counter)
    category_week: Counter = field(default_factory=Counter)
    iterations: int = 0
    exhausted: bool = False

    def bookings(self) -> Tuple:
        return (self.busy, self.home_weeks, self.away_weeks, self.meetings, self.week_games, self.category_week)


class ScheduleAssignmentSolver:
    """
    Assigns every matchup of a pool to a week, trying the relaxation, the
    exact solve and finally the greedy fallback.
    """

    def __init__(self, teams: List[Team], matchups: List[Matchup], rules: LeagueRules,
                 fixed_games: Optional[List[Game]] = None, locked_weeks: Optional[Set[int]] = None,
                 time_limit_seconds: Optional[float] = None, num_workers: Optional[int] = None,
                 max_iterations: Optional[int] = None, max_restarts: Optional[int] = None,
                 use_relaxation: bool = True,
                 use_exact: Optional[bool] = None, cancel_event: Optional[threading.Event] = None):
        self.teams = list(teams)
        self.matchups = list(matchups)
        self.rules = rules
        self.fixed_games = list(fixed_games or [])
        self.locked_weeks = set(locked_weeks or set())
        self.time_limit_seconds = time_limit_seconds if time_limit_seconds is not None else SOLVER_TIME_LIMIT_SECONDS
        self.num_workers = num_workers if num_workers is not None else SOLVER_NUM_WORKERS
        self.max_iterations = max_iterations if max_iterations is not None else GREEDY_MAX_ITERATIONS
        self.max_restarts = max_restarts if max_restarts is not None else GREEDY_MAX_RESTARTS
        self.use_relaxation = use_relaxation
        self.use_exact = USE_EXACT_SOLVER if use_exact is None else use_exact
        self.cancel_event = cancel_event
        self.validator = ScheduleValidator()

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _result(self, status: SolveStatus, start: float, **kwargs) -> SolverResult:
        return SolverResult(status=status, elapsed=time.monotonic() - start, **kwargs)

    def _cancelled_result(self, start: float, diagnostics: List[str]) -> SolverResult:
        logger.info("Schedule solve cancelled")
        return self._result(
            SolveStatus.CANCELLED, start, diagnostics=diagnostics,
            failure=FailureReport(kind=FailureKind.CANCELLED, dimensions=[], message="solve cancelled"),
        )

    def solve(self) -> SolverResult:
        """
        Run the strategy chain.

        Returns:
            SolverResult with the games on success, or the typed failure
        """
        start = time.monotonic()
        deadline = start + self.time_limit_seconds
        diagnostics: List[str] = []

        log_banner(logger, "Starting week assignment...")
        try:
            formulation = AssignmentFormulation(
                self.teams, self.matchups, self.rules, self.fixed_games, self.locked_weeks
            )
            formulation.check_structure()
        except StructuralInfeasibility as e:
            logger.error(f"Structural infeasibility: {e}")
            return self._result(SolveStatus.FAILED, start, failure=FailureReport.from_structural(e))

        logger.info(
            f"Formulation: {len(formulation.variables)} variables, {len(formulation.rows)} rows "
            f"{formulation.family_sizes()}"
        )

        strategies = []
        if self.use_relaxation:
            strategies.append(("relaxation", self._solve_relaxation))
        if self.use_exact:
            strategies.append(("exact", self._solve_exact))

        for method, strategy in strategies:
            if self._cancelled():
                return self._cancelled_result(start, diagnostics)
            try:
                chosen = strategy(formulation, max(1.0, deadline - time.monotonic()))
            except SolverDegenerate as e:
                logger.warning(str(e))
                diagnostics.append(str(e))
                continue
            except StructuralInfeasibility as e:
                logger.error(f"Structural infeasibility: {e}")
                return self._result(
                    SolveStatus.FAILED, start, method=method, diagnostics=diagnostics,
                    failure=FailureReport.from_structural(e),
                )

            if self._cancelled():
                return self._cancelled_result(start, diagnostics)

            games = formulation.games_for(chosen)
            validation = self.validator.validate_schedule(self._schedule_of(games), verbose=False)
            if validation.is_valid:
                logger.info(f"Schedule found by {method} solve: {len(games)} games")
                return self._result(SolveStatus.SUCCESS, start, method=method, games=games, diagnostics=diagnostics)

            message = f"{method} solution failed validation: {', '.join(validation.violation_types())}"
            logger.warning(message)
            diagnostics.append(message)

        if self._cancelled():
            return self._cancelled_result(start, diagnostics)

        return self._solve_greedy(formulation, start, diagnostics)

    def _schedule_of(self, games: List[Game]) -> Schedule:
        schedule = Schedule(teams=self.teams, matchups=self.matchups, rules=self.rules)
        for game in games:
            schedule.add_game(game)
        return schedule

    # Relaxation

    def _solve_relaxation(self, formulation: AssignmentFormulation, time_limit: float) -> List[int]:
        solver = pywraplp.Solver.CreateSolver("GLOP")
        if solver is None:
            raise SolverDegenerate("relaxation", "GLOP backend unavailable")
        solver.SetTimeLimit(int(time_limit * 1000))

        xs = [solver.NumVar(0.0, 1.0, f"x{i}") for i in range(len(formulation.variables))]
        for row in formulation.rows:
            constraint = solver.Constraint(float(row.lower), float(row.upper), row.name)
            for v in row.variables:
                constraint.SetCoefficient(xs[v], 1.0)

        objective = solver.Objective()
        for x, cost in zip(xs, formulation.costs()):
            objective.SetCoefficient(x, cost)
        objective.SetMinimization()

        logger.info(f"Solving linear relaxation ({time_limit:.0f}s budget)...")
        status = solver.Solve()
        if status == pywraplp.Solver.INFEASIBLE:
            raise StructuralInfeasibility("FORMULATION", "even the relaxed assignment has no solution")
        if status not in (pywraplp.Solver.OPTIMAL, pywraplp.Solver.FEASIBLE):
            raise SolverDegenerate("relaxation", f"solver status {status}")

        values = [x.solution_value() for x in xs]
        if all(v < EPSILON for v in values):
            raise SolverDegenerate("relaxation", "all-zero solution")
        fractional = sum(1 for v in values if EPSILON < v < 1 - EPSILON)
        if fractional:
            raise SolverDegenerate("relaxation", f"{fractional} fractional variables")
        return [i for i, v in enumerate(values) if v > 0.5]

    # Exact

    def _solve_exact(self, formulation: AssignmentFormulation, time_limit: float) -> List[int]:
        model = cp_model.CpModel()
        xs = [model.new_bool_var(f"x{i}") for i in range(len(formulation.variables))]
        for row in formulation.rows:
            model.add_linear_constraint(sum(xs[v] for v in row.variables), row.lower, row.upper)

        solver = cp_model.CpSolver()
        solver.parameters.max_time_in_seconds = time_limit
        solver.parameters.num_workers = self.num_workers
        solver.parameters.log_search_progress = False

        logger.info(f"Solving CP-SAT model ({time_limit:.0f}s timeout)...")
        status = solver.solve(model)

        if status == cp_model.OPTIMAL or status == cp_model.FEASIBLE:
            logger.info(f"Solution found (status: {solver.status_name(status)})")
            return [i for i, x in enumerate(xs) if solver.value(x)]
        if status == cp_model.INFEASIBLE:
            raise StructuralInfeasibility("FORMULATION", "the assignment model is infeasible")
        raise SolverDegenerate("exact", f"no solution within {time_limit:.0f}s ({solver.status_name(status)})")

    # Greedy fallback

    def _solve_greedy(self, formulation: AssignmentFormulation, start: float,
                      diagnostics: List[str]) -> SolverResult:
        logger.info("Using greedy week-by-week assignment...")
        order = sorted(formulation.open_matchups, key=lambda m: (-CATEGORY_PRIORITY[m.category], m.id))
        budget = self.max_iterations
        best: Optional[GreedyPass] = None
        passes = 0

        while True:
            current = self._greedy_pass(formulation, order, budget)
            if current is None:
                return self._cancelled_result(start, diagnostics)
            passes += 1
            budget -= current.iterations
            if best is None or len(current.unplaced) < len(best.unplaced):
                best = current
            if not current.unplaced or current.exhausted or passes > self.max_restarts:
                break
            logger.info(f"Greedy pass {passes} left {len(current.unplaced)} matchups unplaced, restarting")
            # Leftovers of this pass are placed first in the next one
            left = {m.id for m in current.unplaced}
            order = [m for m in order if m.id in left] + [m for m in order if m.id not in left]

        if passes > 1:
            diagnostics.append(f"greedy fallback ran {passes} passes")
        if current.exhausted:
            diagnostics.append(f"greedy iteration budget of {self.max_iterations} exhausted")

        state = best
        games = sorted(list(formulation.fixed_games) + state.placed, key=lambda g: (g.week, g.matchup.id))
        residual = sorted(state.unplaced, key=lambda m: m.id)

        if residual:
            reasons = Counter()
            for matchup in residual:
                for week in formulation.open_weeks:
                    reason = self._blocking_reason(matchup, week, *state.bookings())
                    reasons[reason or "BYE_SCHEDULE"] += 1
            top = max(reasons.values())
            dimensions = sorted(reason for reason, count in reasons.items() if count == top)
            message = (
                f"greedy fallback left {len(residual)} of {len(formulation.open_matchups)} matchups unplaced; "
                f"most blocked by {', '.join(dimensions)}"
            )
            logger.warning(message)
            return self._result(
                SolveStatus.PARTIAL, start, method="greedy", games=games, residual=residual,
                diagnostics=diagnostics,
                failure=FailureReport(
                    kind=FailureKind.PARTIAL, dimensions=dimensions, message=message,
                    demand=len(formulation.open_matchups), supply=len(state.placed),
                    residual=[m.id for m in residual],
                ),
            )

        validation = self.validator.validate_schedule(self._schedule_of(games), verbose=False)
        if not validation.is_valid:
            dimensions = validation.violation_types()
            message = f"greedy schedule places every matchup but breaks {', '.join(dimensions)}"
            logger.warning(message)
            return self._result(
                SolveStatus.PARTIAL, start, method="greedy", games=games, diagnostics=diagnostics,
                failure=FailureReport(
                    kind=FailureKind.PARTIAL, dimensions=dimensions, message=message,
                    demand=len(validation.hard_constraint_violations), supply=0,
                ),
            )

        logger.info(f"Greedy assignment complete: {len(games)} games in {passes} passes")
        return self._result(SolveStatus.SUCCESS, start, method="greedy", games=games, diagnostics=diagnostics)

    def _greedy_pass(self, formulation: AssignmentFormulation, order: List[Matchup],
                     budget: int) -> Optional[GreedyPass]:
        """
        One week-by-week pass over the matchups in the given order.

        Returns:
            GreedyPass with the placed games and leftovers, or None if cancelled
        """
        rules = self.rules
        n = formulation.league_size
        state = GreedyPass(unplaced=list(order))
        bookings = state.bookings()

        bye_used = {}
        for team_id in formulation.team_ids:
            bye_used[team_id] = formulation.fixed_bye_week(team_id) is not None
        for game in formulation.fixed_games:
            self._book(game, *bookings)

        window_weeks = [w for w in formulation.open_weeks if rules.is_bye_eligible(w)]

        for week in formulation.open_weeks:
            if self._cancelled():
                return None

            target = formulation.week_capacity
            if rules.is_bye_eligible(week):
                needing = sum(1 for used in bye_used.values() if not used)
                weeks_left = sum(1 for w in window_weeks if w >= week)
                byes_now = math.ceil(needing / weeks_left) if weeks_left else 0
                byes_now = min(byes_now, rules.max_byes_per_week, needing)
                if (n - byes_now) % 2:
                    byes_now += 1 if byes_now < min(rules.max_byes_per_week, needing) else -1
                target = (n - max(0, byes_now)) // 2
            must_play = {t for t in formulation.team_ids if bye_used[t] or not rules.is_bye_eligible(week)}

            count = 0
            # Pairs of must-play teams first, then games with one must-play team, then the rest
            for required in (2, 1, 0):
                for matchup in list(state.unplaced):
                    if count >= target:
                        break
                    if state.iterations >= budget:
                        state.exhausted = True
                        break
                    state.iterations += 1
                    if (matchup.home in must_play) + (matchup.away in must_play) < required:
                        continue
                    if self._blocking_reason(matchup, week, *bookings) is not None:
                        continue
                    game = Game(matchup=matchup, week=week)
                    self._book(game, *bookings)
                    state.placed.append(game)
                    state.unplaced.remove(matchup)
                    count += 1

            if rules.is_bye_eligible(week):
                for team_id in formulation.team_ids:
                    if week not in state.busy[team_id]:
                        bye_used[team_id] = True

        return state

    @staticmethod
    def _book(game: Game, busy, home_weeks, away_weeks, meetings, week_games, category_week):
        busy[game.home].add(game.week)
        busy[game.away].add(game.week)
        home_weeks[game.home].add(game.week)
        away_weeks[game.away].add(game.week)
        meetings[game.matchup.pair].append(game.week)
        week_games[game.week] += 1
        category_week[(game.category, game.week)] += 1

    def _blocking_reason(self, matchup: Matchup, week: int, busy, home_weeks, away_weeks,
                         meetings, week_games, category_week) -> Optional[str]:
        """Why the matchup cannot go into the week, or None when it can."""
        rules = self.rules
        if week in busy[matchup.home] or week in busy[matchup.away]:
            return "TEAM_WEEK_CONFLICT"
        if week_games[week] >= len(self.teams) // 2:
            return "WEEK_CAPACITY"
        if any(abs(week - met) < rules.min_rematch_gap for met in meetings.get(matchup.pair, [])):
            return "REMATCH_GAP"
        cap = rules.category_cap(matchup.category)
        if cap is not None and category_week[(matchup.category, week)] >= cap:
            return "CATEGORY_QUOTA"
        if self._breaks_streak(home_weeks[matchup.home], week, rules.max_consecutive_home):
            return "HOME_AWAY_STREAK"
        if self._breaks_streak(away_weeks[matchup.away], week, rules.max_consecutive_away):
            return "HOME_AWAY_STREAK"
        return None

    @staticmethod
    def _breaks_streak(weeks: Set[int], week: int, limit: Optional[int]) -> bool:
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
