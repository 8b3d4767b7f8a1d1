"""Drops candidate recipients who may not see the event's matter."""

import asyncio
from typing import Protocol

from domain.services.case_access import AccessDecision


class IEntityAccessChecker(Protocol):
    """Entity-access predicate supplied by the business-entity side."""

    async def can_access(self, org_id: str, entity_id: str, uid: str) -> AccessDecision:
        ...


class AccessFilter:
    """Filters candidates through the entity-access predicate."""

    def __init__(self, checker: IEntityAccessChecker) -> None:
        self._checker = checker

    async def filter(self, org_id: str, matter_id: str | None, candidates: set[str]) -> set[str]:
        """Return the candidates allowed to see ``matter_id``.

        Without a matter id the event is org-level and every candidate passes.
        """
        if not matter_id or not candidates:
            return set(candidates)

        uids = sorted(candidates)
        decisions = await asyncio.gather(
            *(self._checker.can_access(org_id, matter_id, uid) for uid in uids)
        )
        return {uid for uid, decision in zip(uids, decisions) if decision.allowed}
