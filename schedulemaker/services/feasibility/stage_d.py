"""
Stage D: rolling reserves over the rest of the season.

Checks resources that are consumed gradually and tend to run out late:
the weeks left for a pair's second meeting, the division game capacity and
the distribution of pending byes over the bye window.
"""

from collections import defaultdict
from typing import List

from schedulemaker.models import Category, ConstraintEntry, ConstraintStatus, Dimension
from schedulemaker.services.feasibility.flow import bipartite_max_flow
from schedulemaker.services.feasibility.state import FeasibilityState

STAGE = "D"


def run_stage_d(state: FeasibilityState, tight_margin: int, rematch_tight_weeks: int) -> List[ConstraintEntry]:
    entries = []
    entries.extend(_rematch_windows(state, rematch_tight_weeks))
    entries.extend(_group_reserve(state, tight_margin))
    entries.append(_bye_forecast(state))
    return entries


def _rematch_windows(state: FeasibilityState, tight_weeks: int) -> List[ConstraintEntry]:
    entries = []
    gap = state.rules.min_rematch_gap
    for pair in sorted(state.pair_remaining):
        remaining = state.pair_remaining[pair]
        met = sorted(state.pair_meetings.get(pair, []))
        subject = f"{pair[0]}:{pair[1]}"

        if met:
            matchup = remaining[0]
            legal = tuple(w for w in state.open_weeks if state.is_legal(matchup, w))
            if len(legal) >= tight_weeks:
                continue
            status = ConstraintStatus.VIOLATED if not legal else ConstraintStatus.TIGHT
            if legal:
                message = (
                    f"{pair[0]} and {pair[1]} met in week {met[0]}; only "
                    f"{len(legal)} legal week{'s' if len(legal) != 1 else ''} left for the rematch"
                )
            else:
                message = f"{pair[0]} and {pair[1]} met in week {met[0]}; no legal week left for the rematch"
            entries.append(ConstraintEntry(
                dimension=Dimension.REMATCH_WINDOW,
                subject=subject,
                stage=STAGE,
                status=status,
                demand=len(remaining),
                supply=len(legal),
                message=message,
                team_ids=pair,
                weeks=legal,
            ))
        elif len(remaining) > 1:
            first_weeks = [w for w in state.open_weeks if state.is_legal(remaining[0], w)]
            second_weeks = [w for w in state.open_weeks if state.is_legal(remaining[1], w)]
            spread = any(abs(a - b) >= gap for a in first_weeks for b in second_weeks)
            if not spread:
                weeks = tuple(sorted(set(first_weeks) | set(second_weeks)))
                entries.append(ConstraintEntry(
                    dimension=Dimension.REMATCH_WINDOW,
                    subject=subject,
                    stage=STAGE,
                    status=ConstraintStatus.VIOLATED,
                    demand=len(remaining),
                    supply=1 if weeks else 0,
                    message=f"{pair[0]} and {pair[1]} cannot fit both meetings {gap} weeks apart",
                    team_ids=pair,
                    weeks=weeks,
                ))
    return entries


def _group_reserve(state: FeasibilityState, margin: int) -> List[ConstraintEntry]:
    """Remaining division games against what the division can still host week by week."""
    members = defaultdict(list)
    for team in state.teams:
        members[team.division].append(team.id)

    remaining = defaultdict(list)
    for matchup in state.unplaced:
        if matchup.category == Category.IN_GROUP:
            remaining[state.schedule.get_team(matchup.home).division].append(matchup)

    entries = []
    for division in sorted(remaining):
        matchups = remaining[division]
        demand = len(matchups)
        supply = 0
        for week in state.open_weeks:
            free = sum(1 for t in members[division] if state.is_free(t, week))
            pairs = {m.pair for m in matchups if state.is_legal(m, week)}
            supply += min(free // 2, len(pairs))
        if demand > supply:
            status = ConstraintStatus.VIOLATED
        elif supply - demand <= margin:
            status = ConstraintStatus.TIGHT
        else:
            continue
        entries.append(ConstraintEntry(
            dimension=Dimension.GROUP_RESERVE,
            subject=division,
            stage=STAGE,
            status=status,
            demand=demand,
            supply=supply,
            message=f"{division} has {demand} division games left and room for {supply}",
            team_ids=tuple(sorted(members[division])),
        ))
    return entries


def _bye_forecast(state: FeasibilityState) -> ConstraintEntry:
    """Can every pending bye land in a window week that still has room and where the team is free?"""
    needers = sorted(state.needs_bye)
    weeks = [w for w in state.open_weeks if state.bye_room(w)]
    options = {t: [w for w in weeks if state.is_free(t, w)] for t in needers}
    edges = [(t, w) for t in needers for w in options[t]]
    capacity = {w: state.bye_room(w) for w in weeks}
    supply = bipartite_max_flow(needers, weeks, edges, right_capacity=capacity)
    demand = len(needers)

    stranded = tuple(t for t in needers if not options[t])
    single = tuple(t for t in needers if len(options[t]) == 1)
    if supply < demand:
        status = ConstraintStatus.VIOLATED
        team_ids = stranded
        message = f"only {supply} of {demand} pending byes can be placed in the window"
        if stranded:
            message += f"; no bye week left for {', '.join(stranded)}"
    elif single:
        status = ConstraintStatus.TIGHT
        team_ids = single
        message = f"{', '.join(single)} {'has' if len(single) == 1 else 'have'} a single bye week left"
    else:
        status = ConstraintStatus.HEALTHY
        team_ids = ()
        message = f"all {demand} pending byes fit in the window"

    return ConstraintEntry(
        dimension=Dimension.BYE_FORECAST,
        subject="",
        stage=STAGE,
        status=status,
        demand=demand,
        supply=supply,
        message=message,
        team_ids=team_ids,
    )
