"""Notification repository protocol."""

from datetime import datetime
from typing import Protocol

from domain.entities.notification import (
    NotificationCategory,
    NotificationChannel,
    NotificationPreference,
    NotificationRecord,
    NotificationStatus,
    SuppressionRecord,
)


class INotificationRepository(Protocol):
    """Repository interface for notification records, preferences and suppressions."""

    # --- Records ---

    async def get(self, notification_id: str) -> NotificationRecord | None:
        """Get a notification record by ID."""
        ...

    async def get_existing_ids(self, ids: list[str]) -> set[str]:
        """Return the subset of ``ids`` that already exist."""
        ...

    async def create_batch(self, records: list[NotificationRecord]) -> None:
        """Add records to the current transaction."""
        ...

    async def find_for_dispatch(
        self,
        org_id: str,
        event_id: str,
        recipient_uid: str,
        channel: NotificationChannel,
    ) -> NotificationRecord | None:
        """Find the record for an (event, recipient, channel) tuple."""
        ...

    async def update_status(
        self,
        notification_id: str,
        status: NotificationStatus,
        now: datetime,
        sent_at: datetime | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Transition a record's delivery status."""
        ...

    async def list_for_recipient(
        self,
        org_id: str,
        uid: str,
        channel: NotificationChannel,
        category: NotificationCategory | None = None,
        read_status: str = "all",
        limit: int = 50,
    ) -> list[NotificationRecord]:
        """List a recipient's records, newest first."""
        ...

    async def mark_read(self, notification_id: str, now: datetime) -> bool:
        """Stamp ``read_at`` on a single record."""
        ...

    async def mark_all_read(self, org_id: str, uid: str, now: datetime) -> int:
        """Mark every unread in-app record read. Returns count updated."""
        ...

    async def get_unread_count(self, org_id: str, uid: str) -> int:
        """Count unread in-app records."""
        ...

    # --- Preferences ---

    async def get_preference(
        self, org_id: str, uid: str, category: NotificationCategory
    ) -> NotificationPreference | None:
        """Get the stored preference for one category."""
        ...

    async def get_preferences(self, org_id: str, uid: str) -> list[NotificationPreference]:
        """Get all stored preferences for a user in an org."""
        ...

    async def upsert_preference(self, pref: NotificationPreference) -> NotificationPreference:
        """Create or replace a preference."""
        ...

    # --- Suppression list ---

    async def is_suppressed(self, org_id: str, normalized_email: str) -> bool:
        """True when the address is on the org's no-send list."""
        ...

    async def add_suppression(self, record: SuppressionRecord) -> SuppressionRecord:
        """Add (or keep) an address on the no-send list."""
        ...
