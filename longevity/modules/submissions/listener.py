"""
Submission Approval Handler

Purpose
-------
React to `submission.approved`. Whoever approves a submission publishes
the event; this handler brings the derived state up to date.

Consumes
--------
"submission.approved" with payload:
    {
        "submission_id": str,
        "athlete_id": str,
        "athlete_name": str,
        "season_id": str,
        "league_id": Optional[str],
        "pheno_age": float,
        "age_reduction": float,
    }

Steps, in order
---------------
1. Athlete leaderboard entry rebuilt and the season reranked
2. League score and league ranks, when the submission belongs to a league
3. `submission_verified` activity entry (best-effort)
4. Badge evaluation for the athlete (failures logged, never raised)

Steps 1 and 2 propagate their errors; the event bus isolates them from
other listeners.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

from longevity.core.event.types import SUBMISSION_APPROVED, EventPayload, ListenerPriority
from longevity.core.logging.logger import LogContext, get_logger
from longevity.database.models.enums import ActivityEventType
from longevity.modules.shared.exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from longevity.core.event.bus import EventBus
    from longevity.modules.badges.service import BadgeAwardResult, BadgeService
    from longevity.modules.leaderboard.service import AthleteLeaderboardService
    from longevity.modules.leagues.service import LeagueScoringService
    from longevity.modules.shared.activity import ActivityLog


@dataclass
class ApprovalOutcome:
    athlete_id: str
    season_id: str
    league_id: Optional[str] = None
    leaderboard_updated: bool = False
    league_updated: bool = False
    badges: Optional[BadgeAwardResult] = None


def _required(payload: EventPayload, key: str) -> str:
    value = payload.get(key)
    if not value or not isinstance(value, str):
        raise ValidationError(key, f"submission.approved payload is missing '{key}'")
    return value


class SubmissionApprovalHandler:
    LISTENER_ID = "submissions.approval_handler"

    def __init__(
        self,
        event_bus: EventBus,
        leaderboard: AthleteLeaderboardService,
        leagues: LeagueScoringService,
        badges: BadgeService,
        activity: ActivityLog,
        logger: Optional[Logger] = None,
    ) -> None:
        self._event_bus = event_bus
        self._leaderboard = leaderboard
        self._leagues = leagues
        self._badges = badges
        self._activity = activity
        self.log = logger or get_logger(__name__)

    def register(self) -> str:
        listener_id = self._event_bus.subscribe(
            SUBMISSION_APPROVED,
            self.handle,
            priority=ListenerPriority.HIGH,
            identifier=self.LISTENER_ID,
        )
        self.log.info("Subscribed to submission approvals", extra={"event_name": SUBMISSION_APPROVED})
        return listener_id

    def unregister(self) -> bool:
        return self._event_bus.unsubscribe(SUBMISSION_APPROVED, self.LISTENER_ID)

    async def handle(self, payload: EventPayload) -> ApprovalOutcome:
        athlete_id = _required(payload, "athlete_id")
        season_id = _required(payload, "season_id")
        league_id = payload.get("league_id") or None

        outcome = ApprovalOutcome(athlete_id=athlete_id, season_id=season_id, league_id=league_id)

        async with LogContext(
            athlete_id=athlete_id,
            season_id=season_id,
            league_id=league_id,
            component="submissions",
            operation="submission_approved",
        ):
            best = await self._leaderboard.record_approved_submission(athlete_id, season_id)
            outcome.leaderboard_updated = best is not None

            if league_id:
                await self._leagues.on_submission_approved(athlete_id, league_id, season_id)
                outcome.league_updated = True

            await self._record_activity(payload, athlete_id, season_id)

            try:
                outcome.badges = await self._badges.check_and_award_badges(athlete_id)
            except Exception as exc:
                self.log.error(
                    "Badge evaluation after approval failed",
                    extra={"athlete_id": athlete_id, "error_type": type(exc).__name__, "error": str(exc)},
                    exc_info=True,
                )

        self.log.info(
            "Submission approval processed",
            extra={
                "athlete_id": athlete_id,
                "season_id": season_id,
                "league_id": league_id,
                "badges_awarded": len(outcome.badges.awarded) if outcome.badges else 0,
            },
        )
        return outcome

    async def _record_activity(self, payload: EventPayload, athlete_id: str, season_id: str) -> None:
        athlete_name = payload.get("athlete_name") or "An athlete"
        data: Dict[str, Any] = {
            "phenoAge": payload.get("pheno_age"),
            "ageReduction": payload.get("age_reduction"),
        }
        try:
            await self._activity.append_activity_event(
                ActivityEventType.SUBMISSION_VERIFIED,
                f"{athlete_name}'s biomarker submission was verified",
                data,
                athlete_id=athlete_id,
                season_id=season_id,
            )
        except Exception as exc:
            self.log.warning(
                "Could not record submission activity",
                extra={"athlete_id": athlete_id, "error": str(exc)},
            )
