"""Matter (case) access checks shared by every feature that scopes data to a matter."""

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from domain.entities.directory import MatterVisibility
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None


class CaseAccessService:
    """Decides whether a user may see a matter.

    Org-wide matters are open to every org member (membership is checked by
    the caller). Private matters are limited to the creator and explicit
    participants. Each check runs in its own unit of work so callers may run
    many checks concurrently.
    """

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def can_access(self, org_id: str, matter_id: str, uid: str) -> AccessDecision:
        try:
            async with self._uow_factory() as uow:
                matter = await uow.directory.get_matter(org_id, matter_id)
                if matter is None or matter.deleted_at is not None:
                    return AccessDecision(False, "Case not found")

                if matter.visibility != MatterVisibility.PRIVATE:
                    return AccessDecision(True)

                if matter.created_by == uid:
                    return AccessDecision(True)

                if await uow.directory.is_participant(org_id, matter_id, uid):
                    return AccessDecision(True)

                return AccessDecision(False, "You are not allowed to access this private case")
        except Exception:
            logger.exception(
                "case_access_check_failed",
                org_id=org_id,
                matter_id=matter_id,
                uid=uid,
            )
            return AccessDecision(False, "Failed to verify case access")
