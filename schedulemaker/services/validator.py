"""
Schedule validation module for the League Schedule Maker.
Validates matchup pools and complete schedules against all hard and soft constraints.
"""

import math
from typing import List, Iterable
from collections import defaultdict, Counter

from schedulemaker.models import (
    Category, Matchup, MatchupQuotas, Schedule, Team, SchedulingConstraint,
    ScheduleValidationResult, TeamScheduleStats, WeekScheduleStats
)
from schedulemaker.core.logging_config import get_logger, log_banner

logger = get_logger(__name__)


def consecutive_runs(weeks: Iterable[int]) -> List[List[int]]:
    """Split week numbers into maximal runs of consecutive weeks."""
    runs = []
    for week in sorted(set(weeks)):
        if runs and runs[-1][-1] == week - 1:
            runs[-1].append(week)
        else:
            runs.append([week])
    return runs


class ScheduleValidator:
    """
    Validates league schedules against all constraints.
    Checks both hard constraints (must be satisfied) and soft constraints (preferences).
    """

    def validate_matchup_pool(self, matchups: List[Matchup], teams: List[Team],
                              quotas: MatchupQuotas) -> ScheduleValidationResult:
        """
        Validate a generated matchup pool against the declared quotas.

        Args:
            matchups: The generated pool
            teams: All teams of the league
            quotas: Required per-team counts

        Returns:
            ScheduleValidationResult; every deviation is a hard violation
        """
        result = ScheduleValidationResult(is_valid=True)
        team_ids = {team.id for team in teams}

        expected = quotas.expected_total(len(teams))
        if len(matchups) != expected:
            result.add_violation(SchedulingConstraint(
                constraint_type="pool_size",
                severity="hard",
                description=f"Pool has {len(matchups)} matchups, expected {expected}",
                penalty_score=1000.0
            ))

        ids = Counter(m.id for m in matchups)
        for matchup_id, count in sorted(ids.items()):
            if count > 1:
                result.add_violation(SchedulingConstraint(
                    constraint_type="duplicate_matchup",
                    severity="hard",
                    description=f"{matchup_id} appears {count} times",
                    penalty_score=1000.0
                ))

        pairs = Counter(m.pair for m in matchups)
        for pair, count in sorted(pairs.items()):
            if count > 2:
                result.add_violation(SchedulingConstraint(
                    constraint_type="excessive_meetings",
                    severity="hard",
                    description=f"{pair[0]} and {pair[1]} meet {count} times (max 2)",
                    affected_teams=list(pair),
                    penalty_score=500.0
                ))

        totals = defaultdict(int)
        home = defaultdict(int)
        away = defaultdict(int)
        by_category = defaultdict(lambda: defaultdict(int))
        for matchup in matchups:
            for team_id in (matchup.home, matchup.away):
                if team_id not in team_ids:
                    result.add_violation(SchedulingConstraint(
                        constraint_type="unknown_team",
                        severity="hard",
                        description=f"{matchup.id} references unknown team {team_id}",
                        penalty_score=1000.0
                    ))
                totals[team_id] += 1
                by_category[team_id][matchup.category] += 1
            if matchup.home == matchup.away:
                result.add_violation(SchedulingConstraint(
                    constraint_type="self_matchup",
                    severity="hard",
                    description=f"{matchup.home} is scheduled against itself",
                    affected_teams=[matchup.home],
                    penalty_score=1000.0
                ))
            home[matchup.home] += 1
            away[matchup.away] += 1

        for team in sorted(teams, key=lambda t: t.id):
            problems = []
            if totals[team.id] != quotas.games_per_team:
                problems.append(f"{totals[team.id]} games (need {quotas.games_per_team})")
            if team.id in quotas.home and home[team.id] != quotas.home[team.id]:
                problems.append(f"{home[team.id]} home (need {quotas.home[team.id]})")
            if team.id in quotas.away and away[team.id] != quotas.away[team.id]:
                problems.append(f"{away[team.id]} away (need {quotas.away[team.id]})")
            for category, required in quotas.per_category.items():
                actual = by_category[team.id][category]
                if actual != required:
                    problems.append(f"{actual} {category.value} (need {required})")
            if problems:
                result.add_violation(SchedulingConstraint(
                    constraint_type="team_quota",
                    severity="hard",
                    description=f"{team.id} has " + ", ".join(problems),
                    affected_teams=[team.id],
                    penalty_score=100.0 * len(problems)
                ))

        return result

    def validate_schedule(self, schedule: Schedule, verbose: bool = True) -> ScheduleValidationResult:
        """
        Validate a complete schedule against all constraints.

        Args:
            schedule: The schedule to validate
            verbose: Log the summary banner

        Returns:
            ScheduleValidationResult with all violations found
        """
        result = ScheduleValidationResult(is_valid=True)

        self._check_week_range(schedule, result)
        self._check_matchup_coverage(schedule, result)
        self._check_team_double_booking(schedule, result)
        self._check_team_game_counts(schedule, result)
        self._check_bye_rules(schedule, result)
        self._check_week_capacity(schedule, result)
        self._check_rematch_gap(schedule, result)
        self._check_category_quotas(schedule, result)
        self._check_home_away_streaks(schedule, result)
        self._check_home_away_balance(schedule, result)

        if verbose:
            log_banner(logger, "Validation Results:")
            logger.info(f"Valid: {result.is_valid}")
            logger.info(f"Hard Constraint Violations: {len(result.hard_constraint_violations)}")
            logger.info(f"Soft Constraint Violations: {len(result.soft_constraint_violations)}")
            for violation in result.hard_constraint_violations[:10]:  # Show first 10
                logger.info(f"  - {violation.constraint_type}: {violation.description}")

        return result

    def _check_week_range(self, schedule: Schedule, result: ScheduleValidationResult):
        for game in schedule.scheduled_games:
            if not schedule.rules.has_week(game.week):
                result.add_violation(SchedulingConstraint(
                    constraint_type="week_out_of_range",
                    severity="hard",
                    description=f"{game.matchup.id} is in week {game.week} (season has {schedule.rules.total_weeks})",
                    affected_games=[game],
                    penalty_score=1000.0
                ))

    def _check_matchup_coverage(self, schedule: Schedule, result: ScheduleValidationResult):
        """Every matchup of the pool is scheduled exactly once."""
        for matchup in schedule.unscheduled_matchups():
            result.add_violation(SchedulingConstraint(
                constraint_type="unscheduled_matchup",
                severity="hard",
                description=f"{matchup.id} is not scheduled",
                affected_teams=[matchup.home, matchup.away],
                penalty_score=1000.0
            ))
        for matchup_id, game in sorted(schedule.games.items()):
            if schedule.get_matchup(matchup_id) is None:
                result.add_violation(SchedulingConstraint(
                    constraint_type="unknown_matchup",
                    severity="hard",
                    description=f"{game.id} references a matchup outside the pool",
                    affected_games=[game],
                    penalty_score=1000.0
                ))

    def _check_team_double_booking(self, schedule: Schedule, result: ScheduleValidationResult):
        """A team plays at most one game per week and never in its bye week."""
        booked = defaultdict(list)
        for game in schedule.scheduled_games:
            booked[(game.home, game.week)].append(game)
            booked[(game.away, game.week)].append(game)

        for (team_id, week), games in sorted(booked.items()):
            if len(games) > 1:
                result.add_violation(SchedulingConstraint(
                    constraint_type="team_double_booked",
                    severity="hard",
                    description=f"{team_id} has {len(games)} games in week {week}",
                    affected_teams=[team_id],
                    affected_games=games,
                    penalty_score=1000.0
                ))

        for team_id, week in sorted(schedule.byes.items()):
            if booked.get((team_id, week)):
                result.add_violation(SchedulingConstraint(
                    constraint_type="bye_conflict",
                    severity="hard",
                    description=f"{team_id} has a game during its bye in week {week}",
                    affected_teams=[team_id],
                    affected_games=booked[(team_id, week)],
                    penalty_score=1000.0
                ))

    def _check_team_game_counts(self, schedule: Schedule, result: ScheduleValidationResult):
        required = schedule.rules.games_per_team
        counts = Counter()
        for game in schedule.games.values():
            counts[game.home] += 1
            counts[game.away] += 1
        for team in sorted(schedule.teams, key=lambda t: t.id):
            if counts[team.id] != required:
                result.add_violation(SchedulingConstraint(
                    constraint_type="team_game_count",
                    severity="hard",
                    description=f"{team.id} has {counts[team.id]} games (need {required})",
                    affected_teams=[team.id],
                    penalty_score=500.0
                ))

    def _check_bye_rules(self, schedule: Schedule, result: ScheduleValidationResult):
        """Exactly one bye per team, inside the bye window, at most K per week."""
        rules = schedule.rules
        per_week = defaultdict(list)
        for team in sorted(schedule.teams, key=lambda t: t.id):
            played = {game.week for game in schedule.get_team_games(team.id)}
            free_weeks = [w for w in rules.weeks if w not in played]
            if len(free_weeks) != 1:
                result.add_violation(SchedulingConstraint(
                    constraint_type="bye_count",
                    severity="hard",
                    description=f"{team.id} has {len(free_weeks)} weeks without a game (need exactly 1)",
                    affected_teams=[team.id],
                    penalty_score=500.0
                ))
            for week in free_weeks:
                per_week[week].append(team.id)
                if not rules.is_bye_eligible(week):
                    result.add_violation(SchedulingConstraint(
                        constraint_type="bye_outside_window",
                        severity="hard",
                        description=(
                            f"{team.id} is idle in week {week}, outside the bye window "
                            f"{rules.bye_window_start}-{rules.bye_window_end}"
                        ),
                        affected_teams=[team.id],
                        penalty_score=500.0
                    ))

        for week, team_ids in sorted(per_week.items()):
            if len(team_ids) > rules.max_byes_per_week:
                result.add_violation(SchedulingConstraint(
                    constraint_type="too_many_byes",
                    severity="hard",
                    description=f"Week {week} has {len(team_ids)} byes (max {rules.max_byes_per_week})",
                    affected_teams=team_ids,
                    penalty_score=500.0
                ))

    def _check_week_capacity(self, schedule: Schedule, result: ScheduleValidationResult):
        rules = schedule.rules
        capacity = len(schedule.teams) // 2
        minimum_in_window = math.ceil((len(schedule.teams) - rules.max_byes_per_week) / 2)
        for week in rules.weeks:
            count = len(schedule.get_week_games(week))
            if rules.is_bye_eligible(week):
                low, high = max(0, minimum_in_window), capacity
            else:
                low = high = capacity
            if not low <= count <= high:
                result.add_violation(SchedulingConstraint(
                    constraint_type="week_capacity",
                    severity="hard",
                    description=f"Week {week} has {count} games (allowed {low}-{high})",
                    penalty_score=500.0
                ))

    def _check_rematch_gap(self, schedule: Schedule, result: ScheduleValidationResult):
        gap = schedule.rules.min_rematch_gap
        meetings = defaultdict(list)
        for game in schedule.scheduled_games:
            meetings[game.matchup.pair].append(game)
        for pair, games in sorted(meetings.items()):
            weeks = sorted(g.week for g in games)
            for first, second in zip(weeks, weeks[1:]):
                if second - first < gap:
                    result.add_violation(SchedulingConstraint(
                        constraint_type="rematch_gap",
                        severity="hard",
                        description=(
                            f"{pair[0]} and {pair[1]} meet in weeks {first} and {second} "
                            f"(min gap {gap})"
                        ),
                        affected_teams=list(pair),
                        affected_games=games,
                        penalty_score=300.0
                    ))

    def _check_category_quotas(self, schedule: Schedule, result: ScheduleValidationResult):
        for category in (Category.CROSS_NEAR, Category.CROSS_FAR):
            cap = schedule.rules.category_cap(category)
            if cap is None:
                continue
            per_week = Counter(g.week for g in schedule.games.values() if g.category == category)
            for week, count in sorted(per_week.items()):
                if count > cap:
                    result.add_violation(SchedulingConstraint(
                        constraint_type="category_quota",
                        severity="hard",
                        description=f"Week {week} has {count} {category.value} games (max {cap})",
                        penalty_score=200.0
                    ))

    def _check_home_away_streaks(self, schedule: Schedule, result: ScheduleValidationResult):
        rules = schedule.rules
        for home in (True, False):
            limit = rules.streak_limit(home)
            if limit is None:
                continue
            side = "home" if home else "away"
            for team in sorted(schedule.teams, key=lambda t: t.id):
                weeks = [g.week for g in schedule.get_team_games(team.id) if g.is_home_game(team.id) == home]
                for run in consecutive_runs(weeks):
                    if len(run) > limit:
                        result.add_violation(SchedulingConstraint(
                            constraint_type=f"{side}_streak",
                            severity="hard",
                            description=(
                                f"{team.id} plays {len(run)} straight {side} games "
                                f"in weeks {run[0]}-{run[-1]} (max {limit})"
                            ),
                            affected_teams=[team.id],
                            penalty_score=100.0
                        ))

    def _check_home_away_balance(self, schedule: Schedule, result: ScheduleValidationResult):
        """Check if teams have balanced home/away games (soft constraint)."""
        for team in sorted(schedule.teams, key=lambda t: t.id):
            stats = self.get_team_stats(team.id, schedule)
            if stats.total_games == 0:
                continue

            imbalance = abs(stats.home_games - stats.away_games)
            if imbalance > 1:
                result.add_violation(SchedulingConstraint(
                    constraint_type="home_away_imbalance",
                    severity="soft",
                    description=f"{team.id} has imbalanced home/away: {stats.home_games} home, {stats.away_games} away",
                    affected_teams=[team.id],
                    penalty_score=imbalance * 10.0
                ))

    def get_team_stats(self, team_id: str, schedule: Schedule) -> TeamScheduleStats:
        """
        Calculate statistics for a team's schedule.

        Args:
            team_id: The team to analyze
            schedule: The (possibly partial) schedule

        Returns:
            TeamScheduleStats with all statistics
        """
        team = schedule.get_team(team_id)
        if team is None:
            raise KeyError(f"Unknown team: {team_id}")

        stats = TeamScheduleStats(team=team)
        for game in schedule.get_team_games(team_id):
            stats.total_games += 1
            if game.is_home_game(team_id):
                stats.home_games += 1
            else:
                stats.away_games += 1
            key = game.category.value
            stats.games_by_category[key] = stats.games_by_category.get(key, 0) + 1
            stats.weeks_played.append(game.week)
            stats.opponents.append(game.get_opponent(team_id))

        stats.bye_week = schedule.bye_week(team_id)
        return stats

    def get_week_stats(self, week: int, schedule: Schedule) -> WeekScheduleStats:
        """Statistics for one week: games, byes and remaining game slots."""
        if not schedule.rules.has_week(week):
            raise KeyError(f"Unknown week: {week}")

        info = schedule.get_weeks()[week - 1]
        games = schedule.get_week_games(week)
        stats = WeekScheduleStats(week=info, total_games=len(games))
        for game in games:
            key = game.category.value
            stats.games_by_category[key] = stats.games_by_category.get(key, 0) + 1
        stats.bye_teams = sorted(b.team_id for b in schedule.get_byes() if b.week == week)
        stats.open_slots = len(schedule.teams) // 2 - len(games)
        return stats

    def generate_schedule_report(self, schedule: Schedule) -> str:
        """
        Generate a comprehensive report of the schedule.

        Args:
            schedule: The schedule to report on

        Returns:
            Formatted report string
        """
        report = []
        report.append("=" * 80)
        report.append("SCHEDULE REPORT")
        report.append("=" * 80)
        report.append(f"Season: {schedule.season_year} ({schedule.rules.total_weeks} weeks)")
        report.append(f"Total Games: {len(schedule.games)} of {len(schedule.matchups)}")
        report.append("")

        report.append("Games by Category:")
        by_category = Counter(g.category for g in schedule.games.values())
        for category in Category:
            report.append(f"  {category.value}: {by_category[category]} games")
        report.append("")

        report.append("Games by Week:")
        for week in schedule.rules.weeks:
            stats = self.get_week_stats(week, schedule)
            line = f"  Week {week:2d}: {stats.total_games} games"
            if stats.bye_teams:
                line += f", byes: {', '.join(stats.bye_teams)}"
            if stats.week.fixed:
                line += " (fixed)"
            report.append(line)
        report.append("")

        report.append("Team Statistics:")
        for team in sorted(schedule.teams, key=lambda t: t.id):
            stats = self.get_team_stats(team.id, schedule)
            report.append(f"  {team.id}:")
            report.append(f"    Total Games: {stats.total_games}")
            report.append(f"    Home: {stats.home_games}, Away: {stats.away_games}")
            if stats.bye_week is not None:
                report.append(f"    Bye: week {stats.bye_week}")

        report.append("=" * 80)

        return "\n".join(report)
