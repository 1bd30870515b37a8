"""
Stage B: per-week pairing for the weeks right after the current one.

Within a week every free team either plays or takes a bye, and bye slots are
scarce. The teams that have to play must be pairable through legal remaining
matchups; a maximum matching on the doubled bipartite graph (every team on
both sides) bounds how many games the week can still hold.
"""

import math
from collections import defaultdict
from typing import List

from schedulemaker.models import ConstraintEntry, ConstraintStatus, Dimension
from schedulemaker.services.feasibility.flow import bipartite_max_flow
from schedulemaker.services.feasibility.state import FeasibilityState

STAGE = "B"


def run_stage_b(state: FeasibilityState, lookahead_weeks: int) -> List[ConstraintEntry]:
    entries = []
    for week in state.open_weeks[:lookahead_weeks]:
        entry = _check_week(state, week)
        if entry is not None:
            entries.append(entry)
    return entries


def _check_week(state: FeasibilityState, week: int):
    free = state.free_teams[week]
    if not free:
        return None

    bye_candidates = [t for t in free if t in state.needs_bye] if state.bye_room(week) else []
    bye_slots = min(state.bye_room(week), len(bye_candidates))
    must_play = [t for t in free if t not in bye_candidates]
    required_games = math.ceil((len(free) - bye_slots) / 2)

    free_set = set(free)
    opponents = defaultdict(set)
    for matchup in state.unplaced:
        if matchup.home in free_set and matchup.away in free_set and state.is_legal(matchup, week):
            opponents[matchup.home].add(matchup.away)
            opponents[matchup.away].add(matchup.home)

    edges = [(team, opponent) for team in free for opponent in sorted(opponents[team])]
    supply = bipartite_max_flow(free, free, edges) // 2

    stranded = tuple(t for t in must_play if not opponents[t])
    forced = tuple(t for t in must_play if len(opponents[t]) == 1)
    subject = f"week {week:02d}"

    if stranded or supply < required_games:
        if stranded:
            message = (
                f"Week {week}: {', '.join(stranded)} must play but "
                f"{'has' if len(stranded) == 1 else 'have'} no legal opponent left"
            )
        else:
            message = f"Week {week}: at most {supply} legal pairings for {required_games} required games"
        return ConstraintEntry(
            dimension=Dimension.WEEK_PAIRING,
            subject=subject,
            stage=STAGE,
            status=ConstraintStatus.VIOLATED,
            demand=required_games,
            supply=supply,
            message=message,
            team_ids=stranded,
            weeks=(week,),
        )

    if forced:
        return ConstraintEntry(
            dimension=Dimension.WEEK_PAIRING,
            subject=subject,
            stage=STAGE,
            status=ConstraintStatus.TIGHT,
            demand=required_games,
            supply=supply,
            message=f"Week {week}: {', '.join(forced)} can only be paired one way",
            team_ids=forced,
            weeks=(week,),
        )
    return None
