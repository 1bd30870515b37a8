"""
Stage A: aggregate counting bounds.

Cheap demand-versus-supply comparisons over the whole league. Each check
compares what still has to be placed against the room left for it; slack is
measured in absolute units so placing a game never loosens an unrelated bound.
"""

from typing import List

from schedulemaker.models import Category, ConstraintEntry, ConstraintStatus, Dimension
from schedulemaker.services.feasibility.state import FeasibilityState
from schedulemaker.services.validator import consecutive_runs

STAGE = "A"


def _status(demand: int, supply: int, margin: int) -> ConstraintStatus:
    if demand > supply:
        return ConstraintStatus.VIOLATED
    if demand > 0 and supply - demand <= margin:
        return ConstraintStatus.TIGHT
    return ConstraintStatus.HEALTHY


def run_stage_a(state: FeasibilityState, tight_margin: int) -> List[ConstraintEntry]:
    entries = []
    entries.append(_total_capacity(state))
    entries.extend(_category_capacity(state, tight_margin))
    entries.append(_bye_capacity(state, tight_margin))
    entries.extend(_team_quota(state))
    entries.extend(_home_away(state, tight_margin))
    return entries


def _total_capacity(state: FeasibilityState) -> ConstraintEntry:
    """
    Unplaced games against the game slots left in open weeks. Every team
    needs exactly one idle week, so the slack here is consumed by byes and
    is only reported when it runs out.
    """
    demand = len(state.unplaced)
    supply = sum(len(state.free_teams[w]) // 2 for w in state.open_weeks)
    status = ConstraintStatus.VIOLATED if demand > supply else ConstraintStatus.HEALTHY
    return ConstraintEntry(
        dimension=Dimension.TOTAL_CAPACITY,
        subject="",
        stage=STAGE,
        status=status,
        demand=demand,
        supply=supply,
        message=f"{demand} games left for {supply} open game slots",
        weeks=tuple(state.open_weeks) if status == ConstraintStatus.VIOLATED else (),
    )


def _category_capacity(state: FeasibilityState, margin: int) -> List[ConstraintEntry]:
    entries = []
    for category in Category:
        cap = state.rules.category_cap(category)
        demand = state.remaining_by_category[category]
        supply = 0
        for week in state.open_weeks:
            room = len(state.free_teams[week]) // 2
            if cap is not None:
                room = min(room, max(0, cap - state.category_week[(category, week)]))
            supply += room
        status = _status(demand, supply, margin) if cap is not None else (
            ConstraintStatus.VIOLATED if demand > supply else ConstraintStatus.HEALTHY
        )
        entries.append(ConstraintEntry(
            dimension=Dimension.CATEGORY_CAPACITY,
            subject=category.value,
            stage=STAGE,
            status=status,
            demand=demand,
            supply=supply,
            message=(
                f"{demand} {category.value} games left for {supply} slots"
                + (f" (max {cap} per week)" if cap is not None else "")
            ),
        ))
    return entries


def _bye_capacity(state: FeasibilityState, margin: int) -> ConstraintEntry:
    """Teams still needing a bye against bye slots left in open window weeks."""
    demand = len(state.needs_bye)
    supply = 0
    for week in state.open_weeks:
        room = state.bye_room(week)
        if room:
            candidates = sum(1 for t in state.free_teams[week] if t in state.needs_bye)
            supply += min(room, candidates)
    status = _status(demand, supply, margin)
    team_ids = tuple(sorted(state.needs_bye)) if status != ConstraintStatus.HEALTHY else ()
    return ConstraintEntry(
        dimension=Dimension.BYE_CAPACITY,
        subject="",
        stage=STAGE,
        status=status,
        demand=demand,
        supply=supply,
        message=f"{demand} teams still need a bye; {supply} bye slots remain in the window",
        team_ids=team_ids,
    )


def _team_quota(state: FeasibilityState) -> List[ConstraintEntry]:
    """A team's remaining games plus its pending bye must fit into its free weeks."""
    entries = []
    for team_id in state.team_ids:
        demand = state.remaining[team_id] + (1 if team_id in state.needs_bye else 0)
        supply = len(state.free_weeks[team_id])
        if demand > supply:
            entries.append(ConstraintEntry(
                dimension=Dimension.TEAM_QUOTA,
                subject=team_id,
                stage=STAGE,
                status=ConstraintStatus.VIOLATED,
                demand=demand,
                supply=supply,
                message=(
                    f"{team_id} has {state.remaining[team_id]} games"
                    + (" and a bye" if team_id in state.needs_bye else "")
                    + f" left but only {supply} free weeks"
                ),
                team_ids=(team_id,),
                weeks=tuple(state.free_weeks[team_id]),
            ))
    return entries


def _max_side_games(free_weeks: List[int], limit: int) -> int:
    """Upper bound on same-side games that fit into free weeks without a streak over the limit."""
    return sum(len(run) - len(run) // (limit + 1) for run in consecutive_runs(free_weeks))


def _home_away(state: FeasibilityState, margin: int) -> List[ConstraintEntry]:
    entries = []
    for home in (True, False):
        limit = state.rules.streak_limit(home)
        if limit is None:
            continue
        side = "home" if home else "away"
        placed_weeks = state.home_weeks if home else state.away_weeks
        remaining = state.remaining_home if home else state.remaining_away
        for team_id in state.team_ids:
            subject = f"{team_id}:{side}"
            long_runs = [run for run in consecutive_runs(placed_weeks[team_id]) if len(run) > limit]
            if long_runs:
                run = long_runs[0]
                entries.append(ConstraintEntry(
                    dimension=Dimension.HOME_AWAY,
                    subject=subject,
                    stage=STAGE,
                    status=ConstraintStatus.VIOLATED,
                    demand=len(run),
                    supply=limit,
                    message=f"{team_id} plays {len(run)} straight {side} games in weeks {run[0]}-{run[-1]}",
                    team_ids=(team_id,),
                    weeks=tuple(run),
                ))
                continue

            demand = remaining[team_id]
            supply = _max_side_games(state.free_weeks[team_id], limit)
            status = _status(demand, supply, margin)
            if status != ConstraintStatus.HEALTHY:
                entries.append(ConstraintEntry(
                    dimension=Dimension.HOME_AWAY,
                    subject=subject,
                    stage=STAGE,
                    status=status,
                    demand=demand,
                    supply=supply,
                    message=(
                        f"{team_id} has {demand} {side} games left and room for at most "
                        f"{supply} without exceeding {limit} in a row"
                    ),
                    team_ids=(team_id,),
                ))
    return entries
