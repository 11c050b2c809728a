"""
League subscription tiers as shown to league owners.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from longevity.database.models.enums import LeagueTier


@dataclass(frozen=True)
class LeagueTierInfo:
    name: str
    member_limit: Optional[int]  # None = unlimited
    features: Tuple[str, ...]

    def allows_members(self, count: int) -> bool:
        return self.member_limit is None or count <= self.member_limit


TIER_INFO: Dict[LeagueTier, LeagueTierInfo] = {
    LeagueTier.FREE: LeagueTierInfo(
        name="Free",
        member_limit=10,
        features=("Basic leaderboard", "Public league page"),
    ),
    LeagueTier.STARTER: LeagueTierInfo(
        name="Starter",
        member_limit=50,
        features=("Custom branding", "CSV exports", "Priority support"),
    ),
    LeagueTier.PRO: LeagueTierInfo(
        name="Pro",
        member_limit=250,
        features=("White-label options", "API access", "Custom domain", "Advanced analytics"),
    ),
    LeagueTier.ENTERPRISE: LeagueTierInfo(
        name="Enterprise",
        member_limit=None,
        features=("Unlimited members", "Dedicated instance", "Custom features", "SLA"),
    ),
}


def get_league_tier_info(tier: Union[LeagueTier, str, None]) -> LeagueTierInfo:
    """Tier display info; unknown tiers fall back to FREE."""
    if isinstance(tier, LeagueTier):
        return TIER_INFO[tier]
    try:
        return TIER_INFO[LeagueTier((tier or "").lower())]
    except ValueError:
        return TIER_INFO[LeagueTier.FREE]
