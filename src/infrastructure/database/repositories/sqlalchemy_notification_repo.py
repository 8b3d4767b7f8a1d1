"""SQLAlchemy implementation of Notification repository."""

from datetime import datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.notification import (
    NotificationCategory,
    NotificationChannel,
    NotificationPreference,
    NotificationRecord,
    NotificationStatus,
    SuppressionReason,
    SuppressionRecord,
)
from infrastructure.database.models import (
    NotificationPreferenceModel,
    NotificationRecordModel,
    SuppressionModel,
)


class SQLAlchemyNotificationRepository:
    """SQLAlchemy implementation of INotificationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # --- Records ---

    async def get(self, notification_id: str) -> NotificationRecord | None:
        """Get a notification record by ID."""
        stmt = select(NotificationRecordModel).where(NotificationRecordModel.id == notification_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_existing_ids(self, ids: list[str]) -> set[str]:
        """Return the subset of ``ids`` that already exist."""
        if not ids:
            return set()
        stmt = select(NotificationRecordModel.id).where(NotificationRecordModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def create_batch(self, records: list[NotificationRecord]) -> None:
        """Add records to the current transaction."""
        self._session.add_all([self._to_model(r) for r in records])
        await self._session.flush()

    async def find_for_dispatch(
        self,
        org_id: str,
        event_id: str,
        recipient_uid: str,
        channel: NotificationChannel,
    ) -> NotificationRecord | None:
        """Find the record for an (event, recipient, channel) tuple."""
        stmt = (
            select(NotificationRecordModel)
            .where(
                NotificationRecordModel.org_id == org_id,
                NotificationRecordModel.event_id == event_id,
                NotificationRecordModel.recipient_uid == recipient_uid,
                NotificationRecordModel.channel == channel.value,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def update_status(
        self,
        notification_id: str,
        status: NotificationStatus,
        now: datetime,
        sent_at: datetime | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Transition a record's delivery status."""
        stmt = (
            update(NotificationRecordModel)
            .where(NotificationRecordModel.id == notification_id)
            .values(
                status=status.value,
                sent_at=sent_at,
                error_message=error_message,
                updated_at=now,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[attr-defined]

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
        stmt = select(NotificationRecordModel).where(
            NotificationRecordModel.org_id == org_id,
            NotificationRecordModel.recipient_uid == uid,
            NotificationRecordModel.channel == channel.value,
        )

        if category is not None:
            stmt = stmt.where(NotificationRecordModel.category == category.value)

        if read_status == "read":
            stmt = stmt.where(NotificationRecordModel.read_at.is_not(None))
        elif read_status == "unread":
            stmt = stmt.where(NotificationRecordModel.read_at.is_(None))

        stmt = stmt.order_by(
            NotificationRecordModel.created_at.desc(),
            NotificationRecordModel.id.desc(),
        ).limit(limit)

        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    async def mark_read(self, notification_id: str, now: datetime) -> bool:
        """Stamp ``read_at`` on a single record."""
        stmt = (
            update(NotificationRecordModel)
            .where(NotificationRecordModel.id == notification_id)
            .values(
                read_at=now,
                updated_at=now,
                status=self._read_status_expr(),
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount > 0  # type: ignore[attr-defined]

    async def mark_all_read(self, org_id: str, uid: str, now: datetime) -> int:
        """Mark every unread in-app record read. Returns count updated."""
        stmt = (
            update(NotificationRecordModel)
            .where(
                NotificationRecordModel.org_id == org_id,
                NotificationRecordModel.recipient_uid == uid,
                NotificationRecordModel.channel == NotificationChannel.IN_APP.value,
                NotificationRecordModel.read_at.is_(None),
            )
            .values(
                read_at=now,
                updated_at=now,
                status=NotificationStatus.READ.value,
            )
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined,no-any-return]

    async def get_unread_count(self, org_id: str, uid: str) -> int:
        """Count unread in-app records."""
        stmt = select(func.count(NotificationRecordModel.id)).where(
            NotificationRecordModel.org_id == org_id,
            NotificationRecordModel.recipient_uid == uid,
            NotificationRecordModel.channel == NotificationChannel.IN_APP.value,
            NotificationRecordModel.read_at.is_(None),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one()

    # --- Preferences ---

    async def get_preference(
        self, org_id: str, uid: str, category: NotificationCategory
    ) -> NotificationPreference | None:
        """Get the stored preference for one category."""
        model = await self._session.get(
            NotificationPreferenceModel, (org_id, uid, category.value)
        )
        return self._pref_to_entity(model) if model else None

    async def get_preferences(self, org_id: str, uid: str) -> list[NotificationPreference]:
        """Get all stored preferences for a user in an org."""
        stmt = select(NotificationPreferenceModel).where(
            NotificationPreferenceModel.org_id == org_id,
            NotificationPreferenceModel.uid == uid,
        )
        result = await self._session.execute(stmt)
        return [self._pref_to_entity(m) for m in result.scalars()]

    async def upsert_preference(self, pref: NotificationPreference) -> NotificationPreference:
        """Create or replace a preference."""
        existing = await self._session.get(
            NotificationPreferenceModel, (pref.org_id, pref.uid, pref.category.value)
        )

        if existing:
            existing.in_app = pref.in_app
            existing.email = pref.email
            existing.updated_at = pref.updated_at
            await self._session.flush()
            return self._pref_to_entity(existing)

        model = NotificationPreferenceModel(
            org_id=pref.org_id,
            uid=pref.uid,
            category=pref.category.value,
            in_app=pref.in_app,
            email=pref.email,
            updated_at=pref.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._pref_to_entity(model)

    # --- Suppression list ---

    async def is_suppressed(self, org_id: str, normalized_email: str) -> bool:
        """True when the address is on the org's no-send list."""
        stmt = select(SuppressionModel.email).where(
            SuppressionModel.org_id == org_id,
            SuppressionModel.email == normalized_email,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def add_suppression(self, record: SuppressionRecord) -> SuppressionRecord:
        """Add (or keep) an address on the no-send list."""
        existing = await self._session.get(SuppressionModel, (record.org_id, record.email))
        if existing:
            return self._suppression_to_entity(existing)

        model = SuppressionModel(
            org_id=record.org_id,
            email=record.email,
            reason=record.reason.value,
            provider=record.provider,
            created_at=record.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return self._suppression_to_entity(model)

    # --- Conversion methods ---

    @staticmethod
    def _read_status_expr():  # type: ignore[no-untyped-def]
        """In-app records become ``read``; e-mail keeps its delivery status."""
        return case(
            (
                NotificationRecordModel.channel == NotificationChannel.IN_APP.value,
                NotificationStatus.READ.value,
            ),
            else_=NotificationRecordModel.status,
        )

    def _to_entity(self, model: NotificationRecordModel) -> NotificationRecord:
        """Convert NotificationRecordModel to domain entity."""
        return NotificationRecord(
            id=model.id,
            org_id=model.org_id,
            recipient_uid=model.recipient_uid,
            event_id=model.event_id,
            channel=NotificationChannel(model.channel),
            status=NotificationStatus(model.status),
            category=NotificationCategory(model.category),
            title=model.title,
            body_preview=model.body_preview,
            deep_link=model.deep_link,
            template_id=model.template_id,
            template_version=model.template_version,
            read_at=model.read_at,
            sent_at=model.sent_at,
            error_message=model.error_message,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: NotificationRecord) -> NotificationRecordModel:
        """Convert NotificationRecord domain entity to ORM model."""
        return NotificationRecordModel(
            id=entity.id,
            org_id=entity.org_id,
            recipient_uid=entity.recipient_uid,
            event_id=entity.event_id,
            channel=entity.channel.value,
            status=entity.status.value,
            category=entity.category.value,
            title=entity.title,
            body_preview=entity.body_preview,
            deep_link=entity.deep_link,
            template_id=entity.template_id,
            template_version=entity.template_version,
            read_at=entity.read_at,
            sent_at=entity.sent_at,
            error_message=entity.error_message,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def _pref_to_entity(self, model: NotificationPreferenceModel) -> NotificationPreference:
        """Convert NotificationPreferenceModel to domain entity."""
        return NotificationPreference(
            org_id=model.org_id,
            uid=model.uid,
            category=NotificationCategory(model.category),
            in_app=model.in_app,
            email=model.email,
            updated_at=model.updated_at,
        )

    def _suppression_to_entity(self, model: SuppressionModel) -> SuppressionRecord:
        """Convert SuppressionModel to domain entity."""
        return SuppressionRecord(
            org_id=model.org_id,
            email=model.email,
            reason=SuppressionReason(model.reason),
            provider=model.provider,
            created_at=model.created_at,
        )
