"""Persists notification records and outbox jobs for one routed event."""

from dataclasses import dataclass
from datetime import datetime

import structlog

from domain.entities.domain_event import DomainEvent
from domain.entities.notification import (
    NotificationCategory,
    NotificationChannel,
    NotificationRecord,
)
from domain.entities.outbox import DEFAULT_MAX_ATTEMPTS, OutboxJob
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.notification_content import NotificationContent
from domain.services.preference_resolver import PreferenceResolver
from domain.services.templates import DEFAULT_TEMPLATE_VERSION

logger = structlog.get_logger()


@dataclass(frozen=True)
class WriteResult:
    in_app_created: int = 0
    email_created: int = 0
    jobs_created: int = 0
    already_present: int = 0

    @property
    def total_created(self) -> int:
        return self.in_app_created + self.email_created + self.jobs_created


class NotificationWriter:
    """Writes one record per (recipient, enabled channel) plus an outbox job per e-mail.

    Every id is deterministic, and only ids not yet stored are inserted, so
    running the writer twice for the same event changes nothing. The caller
    owns the transaction and commits once for the whole event.
    """

    def __init__(
        self,
        preferences: PreferenceResolver,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._preferences = preferences
        self._max_attempts = max_attempts

    async def write(
        self,
        uow: IUnitOfWork,
        event: DomainEvent,
        recipients: set[str],
        category: NotificationCategory,
        content: NotificationContent,
        deep_link: str,
        now: datetime,
    ) -> WriteResult:
        records: list[NotificationRecord] = []
        jobs: list[OutboxJob] = []

        for uid in sorted(recipients):
            prefs = await self._preferences.get_effective(uow, event.org_id, uid, category)

            if prefs.in_app:
                records.append(
                    self._record(
                        event, uid, NotificationChannel.IN_APP, category, content, deep_link, now
                    )
                )

            if prefs.email:
                record = self._record(
                    event, uid, NotificationChannel.EMAIL, category, content, deep_link, now
                )
                record.template_id = event.event_type
                record.template_version = DEFAULT_TEMPLATE_VERSION
                records.append(record)
                jobs.append(
                    OutboxJob(
                        org_id=event.org_id,
                        event_id=event.event_id,
                        recipient_uid=uid,
                        max_attempts=self._max_attempts,
                        next_attempt_at=now,
                        created_at=now,
                        updated_at=now,
                    )
                )

        existing_records = await uow.notifications.get_existing_ids([r.id for r in records])
        existing_jobs = await uow.outbox.get_existing_ids([j.id for j in jobs])

        new_records = [r for r in records if r.id not in existing_records]
        new_jobs = [j for j in jobs if j.id not in existing_jobs]

        if new_records:
            await uow.notifications.create_batch(new_records)
        if new_jobs:
            await uow.outbox.create_batch(new_jobs)

        result = WriteResult(
            in_app_created=sum(1 for r in new_records if r.channel == NotificationChannel.IN_APP),
            email_created=sum(1 for r in new_records if r.channel == NotificationChannel.EMAIL),
            jobs_created=len(new_jobs),
            already_present=len(existing_records) + len(existing_jobs),
        )

        if result.already_present:
            logger.info(
                "notification_write_deduplicated",
                event_id=event.event_id,
                already_present=result.already_present,
            )
        return result

    @staticmethod
    def _record(
        event: DomainEvent,
        uid: str,
        channel: NotificationChannel,
        category: NotificationCategory,
        content: NotificationContent,
        deep_link: str,
        now: datetime,
    ) -> NotificationRecord:
        return NotificationRecord(
            org_id=event.org_id,
            recipient_uid=uid,
            event_id=event.event_id,
            channel=channel,
            category=category,
            title=content.title,
            body_preview=content.body_preview,
            deep_link=deep_link,
            created_at=now,
            updated_at=now,
        )
