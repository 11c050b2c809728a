"""
Dense rank assignment for a season's leaderboard.

Ordering is score descending, then entity id ascending, so equal scores
always rank the same way for the same snapshot. Ranks run 1..N with no
gaps.

Every pass records the rank from the prior pass as `previous_rank` before
overwriting it. An entity that was never ranked (stored rank 0) gets None.
"""

from __future__ import annotations

from typing import Iterable, List

from longevity.domain.models import RankAssignment, RankedEntry


def ranking_key(entry: RankedEntry) -> tuple:
    return (-entry.score, entry.entity_id)


def assign_dense_ranks(entries: Iterable[RankedEntry]) -> List[RankAssignment]:
    ordered = sorted(entries, key=ranking_key)

    seen = set()
    assignments: List[RankAssignment] = []
    for position, entry in enumerate(ordered, start=1):
        if entry.entity_id in seen:
            raise ValueError(f"Duplicate leaderboard entity: {entry.entity_id}")
        seen.add(entry.entity_id)

        previous = entry.current_rank if entry.current_rank >= 1 else None

        assignments.append(RankAssignment(entity_id=entry.entity_id, rank=position, previous_rank=previous))

    return assignments
