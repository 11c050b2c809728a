"""
League aggregate scoring.

A league's score for a season is the mean of its members' best approved
age reductions, counting at most the top N members (N defaults to
`Config.LEAGUE_TOP_N`). Adding a weak member can therefore never lower the
score of a league that already fields N active members.
"""

from __future__ import annotations

from typing import Iterable, Optional

from longevity.core.config.config import Config
from longevity.domain.models import LeagueScore


def compute_league_score(
    member_bests: Iterable[float],
    total_members: int,
    top_n: Optional[int] = None,
) -> LeagueScore:
    """
    Aggregate per-member bests into a `LeagueScore`.

    Args:
        member_bests: One best age reduction per member with an approved
            submission in the league and season
        total_members: All members of the league, active or not
        top_n: How many of the best members count toward the average

    Returns:
        The league score; all zeros with `active_members == 0` when no
        member has a qualifying submission
    """
    limit = top_n if top_n is not None else Config.LEAGUE_TOP_N
    if limit < 1:
        raise ValueError(f"top_n must be positive, got {limit}")

    ranked = sorted(member_bests, reverse=True)
    if not ranked:
        return LeagueScore.empty(total_members)

    used = ranked[:limit]
    return LeagueScore(
        avg_age_reduction=sum(used) / len(used),
        total_members=total_members,
        active_members=len(ranked),
        best_individual=used[0],
        worst_individual=used[-1],
        top_member_scores=tuple(used),
    )
