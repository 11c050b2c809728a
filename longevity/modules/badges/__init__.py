"""
Badges Module
=============

Domain: automatic badge awards

Services:
- BadgeService: rule evaluation and idempotent awarding
"""

from .context_loader import BadgeContextLoader
from .repository import BadgeStore, SqlBadgeRepository
from .rules import BADGE_RULES, BadgeRule
from .service import BadgeAwardResult, BadgeService

__all__ = [
    "BADGE_RULES",
    "BadgeAwardResult",
    "BadgeContextLoader",
    "BadgeRule",
    "BadgeService",
    "BadgeStore",
    "SqlBadgeRepository",
]
