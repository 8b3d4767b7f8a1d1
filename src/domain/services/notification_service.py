"""Notification service layer for the caller-facing read and preference APIs."""

from collections.abc import Callable
from datetime import datetime

import structlog

from core.exceptions import (
    InvalidCategoryError,
    NotAMemberError,
    NotificationAccessDeniedError,
    NotificationNotFoundError,
)
from domain.entities.notification import (
    ChannelPreference,
    NotificationCategory,
    NotificationChannel,
    NotificationPreference,
    NotificationRecord,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.preference_resolver import PreferenceResolver

logger = structlog.get_logger()

READ_STATUSES = ("all", "read", "unread")


def parse_category(value: str) -> NotificationCategory:
    """Parse a category name, raising InvalidCategoryError for unknown values."""
    try:
        return NotificationCategory(value)
    except ValueError:
        raise InvalidCategoryError(value) from None


class NotificationService:
    """Service layer for a user's own notifications and preferences.

    Every method checks org membership first; record-level methods also check
    that the record belongs to the caller.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        preferences: PreferenceResolver | None = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._preferences = preferences or PreferenceResolver()

    async def _require_member(self, uow: IUnitOfWork, org_id: str, uid: str) -> None:
        member = await uow.directory.get_member(org_id, uid)
        if not member:
            raise NotAMemberError(org_id)

    # --- Feed ---

    async def list_notifications(
        self,
        org_id: str,
        uid: str,
        channel: NotificationChannel = NotificationChannel.IN_APP,
        category: NotificationCategory | None = None,
        read_status: str = "all",
        limit: int = 50,
    ) -> list[NotificationRecord]:
        """List the caller's notifications, newest first."""
        async with self._uow_factory() as uow:
            await self._require_member(uow, org_id, uid)
            return await uow.notifications.list_for_recipient(
                org_id,
                uid,
                channel,
                category=category,
                read_status=read_status if read_status in READ_STATUSES else "all",
                limit=limit,
            )

    async def mark_read(self, org_id: str, uid: str, notification_id: str) -> None:
        """Mark one of the caller's notifications read."""
        async with self._uow_factory() as uow:
            await self._require_member(uow, org_id, uid)

            record = await uow.notifications.get(notification_id)
            if not record:
                raise NotificationNotFoundError(notification_id)
            if record.recipient_uid != uid or record.org_id != org_id:
                raise NotificationAccessDeniedError(notification_id)

            await uow.notifications.mark_read(notification_id, datetime.utcnow())
            await uow.commit()

    async def mark_all_read(self, org_id: str, uid: str) -> int:
        """Mark all of the caller's unread in-app notifications read."""
        async with self._uow_factory() as uow:
            await self._require_member(uow, org_id, uid)
            marked = await uow.notifications.mark_all_read(org_id, uid, datetime.utcnow())
            await uow.commit()

        logger.info("notifications_marked_read", org_id=org_id, uid=uid, count=marked)
        return marked

    async def get_unread_count(self, org_id: str, uid: str) -> int:
        async with self._uow_factory() as uow:
            await self._require_member(uow, org_id, uid)
            return await uow.notifications.get_unread_count(org_id, uid)

    # --- Preferences ---

    async def get_preferences(
        self, org_id: str, uid: str
    ) -> dict[NotificationCategory, ChannelPreference]:
        """Effective preferences for every category."""
        async with self._uow_factory() as uow:
            await self._require_member(uow, org_id, uid)
            return await self._preferences.get_all(uow, org_id, uid)

    async def update_preference(
        self,
        org_id: str,
        uid: str,
        category: str,
        in_app: bool | None = None,
        email: bool | None = None,
    ) -> ChannelPreference:
        """Update one category's toggles; omitted channels keep their current value."""
        parsed = parse_category(category)

        async with self._uow_factory() as uow:
            await self._require_member(uow, org_id, uid)

            current = await self._preferences.get_effective(uow, org_id, uid, parsed)
            saved = await uow.notifications.upsert_preference(
                NotificationPreference(
                    org_id=org_id,
                    uid=uid,
                    category=parsed,
                    in_app=current.in_app if in_app is None else in_app,
                    email=current.email if email is None else email,
                    updated_at=datetime.utcnow(),
                )
            )
            await uow.commit()

        logger.info(
            "notification_preference_updated",
            org_id=org_id,
            uid=uid,
            category=parsed.value,
            in_app=saved.in_app,
            email=saved.email,
        )
        return ChannelPreference(in_app=saved.in_app, email=saved.email)
