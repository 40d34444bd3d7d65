"""Authorization policy for approving launch-date overrides."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from src.rld_compliance.config import Settings
from src.rld_compliance.deals.schemas import Actor

logger = structlog.get_logger(__name__)


class ApprovalPolicy:
    """Decides whether an actor may approve an override.

    An actor qualifies when their user id is explicitly allow-listed, or when
    they belong to at least one allow-listed team.

    Args:
        allowed_teams: Team names whose members may approve.
        allowed_user_ids: User ids that may always approve.
    """

    def __init__(
        self,
        allowed_teams: Iterable[str] = (),
        allowed_user_ids: Iterable[str | int] = (),
    ) -> None:
        self._allowed_teams = frozenset(allowed_teams)
        self._allowed_user_ids = frozenset(str(uid) for uid in allowed_user_ids)

    @classmethod
    def from_settings(cls, settings: Settings) -> ApprovalPolicy:
        return cls(
            allowed_teams=settings.APPROVER_TEAMS,
            allowed_user_ids=settings.APPROVER_USER_IDS,
        )

    def can_approve(self, actor: Actor | None) -> bool:
        if actor is None:
            return False

        if actor.id is not None and str(actor.id) in self._allowed_user_ids:
            logger.debug("policy.approver_by_user_id", user_id=actor.id)
            return True

        matching = [team for team in actor.teams if team in self._allowed_teams]
        if matching:
            logger.debug("policy.approver_by_team", user_id=actor.id, teams=matching)
            return True

        logger.info("policy.approval_denied", user_id=actor.id, teams=actor.teams)
        return False
