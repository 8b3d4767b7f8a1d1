"""E-mail suppression (no-send) list."""

from collections.abc import Callable

import structlog

from domain.entities.notification import SuppressionReason, SuppressionRecord, normalize_email
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class SuppressionChecker:
    """Checks and maintains the per-org list of addresses that must not get mail."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def is_suppressed(self, org_id: str, email: str) -> bool:
        async with self._uow_factory() as uow:
            return await uow.notifications.is_suppressed(org_id, normalize_email(email))

    async def add(
        self,
        org_id: str,
        email: str,
        reason: SuppressionReason = SuppressionReason.MANUAL,
        provider: str | None = None,
    ) -> SuppressionRecord:
        """Put an address on the list. Adding an existing address is a no-op."""
        record = SuppressionRecord(org_id=org_id, email=email, reason=reason, provider=provider)
        async with self._uow_factory() as uow:
            saved = await uow.notifications.add_suppression(record)
            await uow.commit()

        logger.info(
            "email_suppressed",
            org_id=org_id,
            reason=saved.reason.value,
            provider=provider,
        )
        return saved
