"""
Badge Service

Purpose
-------
Evaluate the badge rule catalog for an athlete and persist newly earned
badges.

Responsibilities
----------------
- Load one `BadgeContext` per evaluation and run every applicable rule
  against it
- Partition the outcome into awarded / already_had / not_eligible / errors
- Award idempotently and write the `badge_earned` activity entry
- Publish `badge.earned` on the event bus

Non-Responsibilities
--------------------
- Rule definitions (see `rules.py`)
- Catalog seeding; badges missing from the catalog are skipped

Design Notes
------------
- A failing rule is recorded in `errors` and never aborts the pass.
- Evaluations for the same athlete are serialized under
  `athlete:{id}:badges`. The (athlete_id, badge_id) unique constraint is
  the final guard against double awards across processes.
- Activity entries and events after an award are best-effort: the award
  stands even if they fail.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Set

from longevity.core.event.types import BADGE_EARNED
from longevity.core.logging.logger import LogContext, get_logger
from longevity.database.models.enums import ActivityEventType, BadgeCategory
from longevity.domain.models import BadgeContext, BadgeRecord, EarnedBadge
from longevity.modules.badges.context_loader import BadgeContextLoader
from longevity.modules.badges.rules import BADGE_RULES, BadgeRule
from longevity.modules.shared.base_service import BaseService
from longevity.modules.shared.exceptions import AthleteNotFoundError
from longevity.modules.shared.locks import athlete_lock_key, build_lock_provider

if TYPE_CHECKING:
    from logging import Logger

    from longevity.core.event.bus import EventBus
    from longevity.modules.badges.repository import BadgeStore
    from longevity.modules.shared.locks import LockProvider


@dataclass
class BadgeAwardResult:
    """Outcome of one evaluation pass, by badge slug."""

    awarded: List[str] = field(default_factory=list)
    already_had: List[str] = field(default_factory=list)
    not_eligible: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "awarded": list(self.awarded),
            "already_had": list(self.already_had),
            "not_eligible": list(self.not_eligible),
            "errors": [dict(item) for item in self.errors],
        }


class BadgeService(BaseService):
    """
    Badge evaluation and awarding.

    Public Methods
    --------------
    - check_and_award_badges(athlete_id) -> full catalog pass
    - check_category_badges(athlete_id, category) -> one category
    - check_eligibility(athlete_id, slug) -> read-only single rule check
    - award_badge(athlete_id, badge, athlete_name) -> idempotent award
    - get_athlete_badges(athlete_id) -> earned badges, newest first
    """

    def __init__(
        self,
        store: BadgeStore,
        event_bus: Optional[EventBus] = None,
        logger: Optional[Logger] = None,
        locks: Optional[LockProvider] = None,
        loader: Optional[BadgeContextLoader] = None,
        rules: Sequence[BadgeRule] = BADGE_RULES,
    ) -> None:
        super().__init__(event_bus, logger or get_logger(__name__), locks or build_lock_provider())
        self._store = store
        self._loader = loader or BadgeContextLoader(store)
        self._rules = list(rules)
        self._rules_by_slug = {rule.slug: rule for rule in self._rules}

    # ========================================================================
    # PUBLIC API
    # ========================================================================

    async def check_and_award_badges(self, athlete_id: str) -> BadgeAwardResult:
        """
        Evaluate every rule and award what the athlete newly qualifies for.

        Idempotent: a second call over unchanged data awards nothing and
        lists the earlier awards under `already_had`.

        Raises:
            AthleteNotFoundError: If the athlete does not exist
        """
        return await self._evaluate(athlete_id, self._rules, "check_and_award_badges")

    async def check_category_badges(self, athlete_id: str, category: BadgeCategory) -> BadgeAwardResult:
        rules = [rule for rule in self._rules if rule.category is category]
        return await self._evaluate(athlete_id, rules, "check_category_badges", category=category.value)

    async def check_eligibility(self, athlete_id: str, slug: str) -> bool:
        """Run one rule without writing anything. Unknown slugs are never eligible."""
        rule = self._rules_by_slug.get(slug)
        if rule is None:
            return False

        context = await self._require_context(athlete_id)
        return await rule.evaluate(context, self._store)

    async def award_badge(self, athlete_id: str, badge: BadgeRecord, athlete_name: str) -> bool:
        """
        Award `badge` if the athlete does not hold it yet.

        Returns:
            True when this call created the award, False when it already existed
        """
        if await self._store.has_award(athlete_id, badge.id):
            return False

        created = await self._store.insert_award_if_absent(athlete_id, badge.id)
        if not created:
            self.log.debug(
                "Badge award lost to a concurrent insert",
                extra={"athlete_id": athlete_id, "badge_slug": badge.slug},
            )
            return False

        data = {
            "badgeId": badge.id,
            "badgeName": badge.name,
            "badgeSlug": badge.slug,
            "badgeCategory": badge.category.value,
        }
        try:
            await self._store.append_activity_event(
                ActivityEventType.BADGE_EARNED,
                f'{athlete_name} earned the "{badge.name}" badge',
                data,
                athlete_id=athlete_id,
            )
        except Exception as exc:
            self.log_error("award_badge.activity", exc, athlete_id=athlete_id, badge_slug=badge.slug)

        await self.emit_event(BADGE_EARNED, {"athlete_id": athlete_id, **data})
        self.log.info("Badge awarded", extra={"athlete_id": athlete_id, "badge_slug": badge.slug})
        return True

    async def get_athlete_badges(self, athlete_id: str) -> List[EarnedBadge]:
        return list(await self._store.list_athlete_badges(athlete_id))

    # ========================================================================
    # INTERNAL
    # ========================================================================

    async def _require_context(self, athlete_id: str) -> BadgeContext:
        context = await self._loader.load(athlete_id)
        if context is None:
            raise AthleteNotFoundError(athlete_id)
        return context

    async def _evaluate(
        self,
        athlete_id: str,
        rules: Sequence[BadgeRule],
        operation: str,
        **log_context: Any,
    ) -> BadgeAwardResult:
        self.log_operation(operation, athlete_id=athlete_id, rule_count=len(rules), **log_context)

        async with LogContext(athlete_id=athlete_id, component="badges", operation=operation):
            async with self.hold_lock(athlete_lock_key(athlete_id), operation):
                context = await self._require_context(athlete_id)
                catalog = {badge.slug: badge for badge in await self._store.badge_catalog()}
                earned = await self._store.awarded_badge_slugs(athlete_id)

                result = BadgeAwardResult()
                for rule in rules:
                    await self._apply_rule(rule, context, catalog, earned, result)

        self.log.info(
            "Badge evaluation complete",
            extra={
                "athlete_id": athlete_id,
                "operation": operation,
                "awarded": len(result.awarded),
                "already_had": len(result.already_had),
                "not_eligible": len(result.not_eligible),
                "errors": len(result.errors),
            },
        )
        return result

    async def _apply_rule(
        self,
        rule: BadgeRule,
        context: BadgeContext,
        catalog: Dict[str, BadgeRecord],
        earned: Set[str],
        result: BadgeAwardResult,
    ) -> None:
        badge = catalog.get(rule.slug)
        if badge is None:
            self.log.debug("Badge rule has no catalog entry", extra={"badge_slug": rule.slug})
            return

        if rule.slug in earned:
            result.already_had.append(rule.slug)
            return

        try:
            eligible = await rule.evaluate(context, self._store)
            if not eligible:
                result.not_eligible.append(rule.slug)
                return

            created = await self.award_badge(context.athlete_id, badge, context.athlete.display_name)
        except Exception as exc:
            self.log.warning(
                "Badge rule failed",
                extra={
                    "athlete_id": context.athlete_id,
                    "badge_slug": rule.slug,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            result.errors.append({"slug": rule.slug, "error": str(exc)})
            return

        if created:
            result.awarded.append(rule.slug)
        else:
            result.already_had.append(rule.slug)
