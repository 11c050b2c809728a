"""
Badge rule catalog.

Purpose
-------
Map every automatically awarded badge slug to the predicate that decides
eligibility. Rules are data: `BADGE_RULES` is an ordered table of
`BadgeRule` entries, and `BadgeService` walks it.

Design Notes
------------
- Pure rules are `(BadgeContext) -> bool`. They read only the context, have
  no side effects, and are deterministic for a given context.
- Scoped rules are `async (BadgeContext, BadgeLookups) -> bool`. They need
  one extra read the shared context does not carry (`league-mvp` needs the
  top submitter per league, `ocr-pioneer` needs a global adoption count).
  The extra read is explicit in the signature rather than hidden in the
  context loader.
- Every rule considers APPROVED submissions only; the context holds nothing
  else.
- Month checks use UTC.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

from longevity.core.config.config import Config
from longevity.database.models.enums import BadgeCategory, EntryMethod
from longevity.database.models.season import FOUNDING_SEASON_SLUG
from longevity.domain.models.badge_context import BadgeContext

# ============================================================================
# Thresholds
# ============================================================================

CONSISTENCY_MIN_SEASONS = 3
AGE_BENDER_MIN_REDUCTION = 5.0
SUPER_AGER_MIN_REDUCTION = 10.0
BREAKTHROUGH_MIN_REDUCTION = 5.0
DATA_SCIENTIST_MIN_SUBMISSIONS = 10
TOP_10_MAX_RANK = 10
PODIUM_MAX_RANK = 3
LEAGUE_FOUNDER_MIN_MEMBERS = 10
TEAM_PLAYER_MIN_MEMBERSHIPS = 3
STEADY_CLIMBER_STREAK = 5
COMEBACK_MIN_GAIN = 3.0

INFLAMMATION_FIGHTER_MIN_COUNT = 3
INFLAMMATION_FIGHTER_MAX_CRP = 1.0  # mg/L, exclusive
METABOLIC_MASTER_MIN_COUNT = 5
METABOLIC_MASTER_GLUCOSE_RANGE = (70.0, 100.0)  # mg/dL, inclusive
KIDNEY_KING_MIN_COUNT = 5
KIDNEY_KING_CREATININE_RANGE = (0.6, 1.2)  # mg/dL, inclusive
LIVER_LEGEND_MIN_COUNT = 5
LIVER_LEGEND_ALP_RANGE = (44.0, 147.0)  # U/L, inclusive

DECEMBER = 12
SUMMER_MONTHS = frozenset({6, 7, 8})


# ============================================================================
# Rule Types
# ============================================================================


class BadgeLookups(Protocol):
    """Extra reads available to scoped rules."""

    async def league_top_submitters(self, league_id: str) -> Sequence[str]:
        """Current members holding the highest approved age reduction in the league."""
        ...

    async def ocr_adopters_before(self, before: datetime, exclude_athlete_id: str) -> int:
        """Distinct other athletes with an approved OCR-assisted submission before `before`."""
        ...


Predicate = Callable[[BadgeContext], bool]
ScopedPredicate = Callable[[BadgeContext, BadgeLookups], Awaitable[bool]]


@dataclass(frozen=True)
class BadgeRule:
    slug: str
    category: BadgeCategory
    check: Optional[Predicate] = None
    scoped_check: Optional[ScopedPredicate] = None

    def __post_init__(self) -> None:
        if (self.check is None) == (self.scoped_check is None):
            raise ValueError(f"Badge rule '{self.slug}' needs exactly one of check/scoped_check")

    @property
    def needs_lookup(self) -> bool:
        return self.scoped_check is not None

    async def evaluate(self, context: BadgeContext, lookups: BadgeLookups) -> bool:
        if self.scoped_check is not None:
            return bool(await self.scoped_check(context, lookups))
        assert self.check is not None
        return bool(self.check(context))


# ============================================================================
# Sequence Helpers
# ============================================================================


def longest_increasing_streak(values: Sequence[float]) -> int:
    """Length of the longest run where each value strictly exceeds the previous."""
    if not values:
        return 0

    longest = streak = 1
    for previous, current in zip(values, values[1:]):
        streak = streak + 1 if current > previous else 1
        longest = max(longest, streak)
    return longest


def has_comeback(values: Sequence[float], min_gain: float = COMEBACK_MIN_GAIN) -> bool:
    """
    True when some value drops below its predecessor and a later value
    exceeds the dropped value by at least `min_gain`.

    >>> has_comeback([5, 2, 7])
    True
    >>> has_comeback([5, 4, 5])
    False
    """
    for index in range(1, len(values)):
        declined = values[index]
        if declined < values[index - 1]:
            if any(later - declined >= min_gain for later in values[index + 1 :]):
                return True
    return False


def _count_in_range(values: Sequence[Optional[float]], low: float, high: float) -> int:
    return sum(1 for value in values if value is not None and low <= value <= high)


def _years_before(moment: datetime, years: int) -> datetime:
    """Same calendar day `years` earlier; Feb 29 falls back to Feb 28."""
    target_year = moment.year - years
    day = moment.day
    if moment.month == 2 and day == 29 and not calendar.isleap(target_year):
        day = 28
    return moment.replace(year=target_year, day=day)


# ============================================================================
# ACHIEVEMENT
# ============================================================================


def _verified(ctx: BadgeContext) -> bool:
    return ctx.athlete.verified


def _consistency(ctx: BadgeContext) -> bool:
    return ctx.distinct_season_count >= CONSISTENCY_MIN_SEASONS


# ============================================================================
# MILESTONE
# ============================================================================


def _age_bender(ctx: BadgeContext) -> bool:
    return any(value >= AGE_BENDER_MIN_REDUCTION for value in ctx.age_reductions)


def _super_ager(ctx: BadgeContext) -> bool:
    return any(value >= SUPER_AGER_MIN_REDUCTION for value in ctx.age_reductions)


def _data_scientist(ctx: BadgeContext) -> bool:
    return len(ctx.submissions) >= DATA_SCIENTIST_MIN_SUBMISSIONS


# ============================================================================
# COMPETITION
# ============================================================================


def _top_10(ctx: BadgeContext) -> bool:
    return ctx.leaderboard is not None and ctx.leaderboard.is_ranked and ctx.leaderboard.rank <= TOP_10_MAX_RANK


def _podium(ctx: BadgeContext) -> bool:
    return ctx.leaderboard is not None and ctx.leaderboard.is_ranked and ctx.leaderboard.rank <= PODIUM_MAX_RANK


# ============================================================================
# LEAGUE
# ============================================================================


def _league_founder(ctx: BadgeContext) -> bool:
    return any(
        membership.league_owner_id == ctx.athlete_id
        and membership.league_member_count >= LEAGUE_FOUNDER_MIN_MEMBERS
        for membership in ctx.memberships
    )


def _team_player(ctx: BadgeContext) -> bool:
    return len(ctx.memberships) >= TEAM_PLAYER_MIN_MEMBERSHIPS


async def _league_mvp(ctx: BadgeContext, lookups: BadgeLookups) -> bool:
    # Sole holder only; a shared top score names no MVP.
    for membership in ctx.memberships:
        top = await lookups.league_top_submitters(membership.league_id)
        if list(top) == [ctx.athlete_id]:
            return True
    return False


# ============================================================================
# BIOMARKER
# ============================================================================


def _inflammation_fighter(ctx: BadgeContext) -> bool:
    low_crp = sum(
        1
        for item in ctx.submissions
        if item.crp is not None and item.crp < INFLAMMATION_FIGHTER_MAX_CRP
    )
    return low_crp >= INFLAMMATION_FIGHTER_MIN_COUNT


def _metabolic_master(ctx: BadgeContext) -> bool:
    values = [item.glucose for item in ctx.submissions]
    return _count_in_range(values, *METABOLIC_MASTER_GLUCOSE_RANGE) >= METABOLIC_MASTER_MIN_COUNT


def _kidney_king(ctx: BadgeContext) -> bool:
    values = [item.creatinine for item in ctx.submissions]
    return _count_in_range(values, *KIDNEY_KING_CREATININE_RANGE) >= KIDNEY_KING_MIN_COUNT


def _liver_legend(ctx: BadgeContext) -> bool:
    values = [item.alp for item in ctx.submissions]
    return _count_in_range(values, *LIVER_LEGEND_ALP_RANGE) >= LIVER_LEGEND_MIN_COUNT


# ============================================================================
# IMPROVEMENT
# ============================================================================


def _breakthrough(ctx: BadgeContext) -> bool:
    return any(value >= BREAKTHROUGH_MIN_REDUCTION for value in ctx.age_reductions)


def _steady_climber(ctx: BadgeContext) -> bool:
    return longest_increasing_streak(ctx.age_reductions) >= STEADY_CLIMBER_STREAK


def _comeback_kid(ctx: BadgeContext) -> bool:
    return has_comeback(ctx.age_reductions)


# ============================================================================
# SCIENCE
# ============================================================================


async def _ocr_pioneer(ctx: BadgeContext, lookups: BadgeLookups) -> bool:
    first_ocr = next(
        (item for item in ctx.submissions if item.entry_method is EntryMethod.OCR_ASSISTED),
        None,
    )
    if first_ocr is None:
        return False

    earlier = await lookups.ocr_adopters_before(first_ocr.submitted_at, ctx.athlete_id)
    return earlier < Config.OCR_PIONEER_LIMIT


# ============================================================================
# SEASONAL
# ============================================================================


def _founding_season(ctx: BadgeContext) -> bool:
    return any(item.season_slug == FOUNDING_SEASON_SLUG for item in ctx.submissions)


def _anniversary(ctx: BadgeContext) -> bool:
    return ctx.athlete.created_at <= _years_before(ctx.evaluated_at, 1)


def _winter_warrior(ctx: BadgeContext) -> bool:
    return any(item.submitted_month_utc == DECEMBER for item in ctx.submissions)


def _summer_soldier(ctx: BadgeContext) -> bool:
    return any(item.submitted_month_utc in SUMMER_MONTHS for item in ctx.submissions)


# ============================================================================
# Catalog
# ============================================================================

BADGE_RULES: List[BadgeRule] = [
    BadgeRule("verified", BadgeCategory.ACHIEVEMENT, check=_verified),
    BadgeRule("consistency", BadgeCategory.ACHIEVEMENT, check=_consistency),
    BadgeRule("age-bender", BadgeCategory.MILESTONE, check=_age_bender),
    BadgeRule("super-ager", BadgeCategory.MILESTONE, check=_super_ager),
    BadgeRule("data-scientist", BadgeCategory.MILESTONE, check=_data_scientist),
    BadgeRule("top-10", BadgeCategory.COMPETITION, check=_top_10),
    BadgeRule("podium", BadgeCategory.COMPETITION, check=_podium),
    BadgeRule("league-founder", BadgeCategory.LEAGUE, check=_league_founder),
    BadgeRule("team-player", BadgeCategory.LEAGUE, check=_team_player),
    BadgeRule("league-mvp", BadgeCategory.LEAGUE, scoped_check=_league_mvp),
    BadgeRule("inflammation-fighter", BadgeCategory.BIOMARKER, check=_inflammation_fighter),
    BadgeRule("metabolic-master", BadgeCategory.BIOMARKER, check=_metabolic_master),
    BadgeRule("kidney-king", BadgeCategory.BIOMARKER, check=_kidney_king),
    BadgeRule("liver-legend", BadgeCategory.BIOMARKER, check=_liver_legend),
    BadgeRule("breakthrough", BadgeCategory.IMPROVEMENT, check=_breakthrough),
    BadgeRule("steady-climber", BadgeCategory.IMPROVEMENT, check=_steady_climber),
    BadgeRule("comeback-kid", BadgeCategory.IMPROVEMENT, check=_comeback_kid),
    BadgeRule("ocr-pioneer", BadgeCategory.SCIENCE, scoped_check=_ocr_pioneer),
    BadgeRule("founding-season", BadgeCategory.SEASONAL, check=_founding_season),
    BadgeRule("anniversary", BadgeCategory.SEASONAL, check=_anniversary),
    BadgeRule("winter-warrior", BadgeCategory.SEASONAL, check=_winter_warrior),
    BadgeRule("summer-soldier", BadgeCategory.SEASONAL, check=_summer_soldier),
]

RULES_BY_SLUG: Dict[str, BadgeRule] = {rule.slug: rule for rule in BADGE_RULES}


def rules_for_category(category: BadgeCategory) -> List[BadgeRule]:
    return [rule for rule in BADGE_RULES if rule.category is category]
