"""Outbox processor: claims due dispatch jobs and sends notification e-mail."""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

import structlog

from domain.entities.email import EmailMessage
from domain.entities.notification import NotificationChannel, NotificationStatus
from domain.entities.outbox import OutboxError, OutboxJob, OutboxStatus, backoff_delay
from domain.repositories.email_provider import IEmailProvider
from domain.repositories.identity_provider import IIdentityProvider
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.suppression import SuppressionChecker
from domain.services.templates import get_default_template, render_template

logger = structlog.get_logger()


class DispatchErrorCode(StrEnum):
    SEND_FAILED = "SEND_FAILED"
    IDENTITY_LOOKUP_FAILED = "IDENTITY_LOOKUP_FAILED"
    NO_EMAIL = "NO_EMAIL"
    TEMPLATE_RENDER_FAILED = "TEMPLATE_RENDER_FAILED"
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"


# Retrying these can never succeed, so the job goes straight to dead
PERMANENT_ERROR_CODES: frozenset[DispatchErrorCode] = frozenset(
    {
        DispatchErrorCode.NO_EMAIL,
        DispatchErrorCode.TEMPLATE_RENDER_FAILED,
        DispatchErrorCode.NOTIFICATION_NOT_FOUND,
    }
)


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of one dispatch attempt.

    ``notification_status`` is the status to write on the e-mail record, or
    None when the record must be left as it is.
    """

    ok: bool
    notification_id: str | None = None
    notification_status: NotificationStatus | None = None
    error_code: DispatchErrorCode | None = None
    error_message: str | None = None

    @property
    def permanent(self) -> bool:
        return self.error_code in PERMANENT_ERROR_CODES

    @classmethod
    def failure(
        cls,
        code: DispatchErrorCode,
        message: str,
        notification_id: str | None = None,
    ) -> "DispatchOutcome":
        return cls(
            ok=False,
            notification_id=notification_id,
            notification_status=NotificationStatus.FAILED if notification_id else None,
            error_code=code,
            error_message=message,
        )


class JobResult(StrEnum):
    SENT = "sent"
    RETRY = "retry"
    DEAD = "dead"
    SKIPPED = "skipped"
    LOCK_LOST = "lock_lost"


@dataclass
class TickResult:
    queried: int = 0
    reclaimed: int = 0
    results: dict[JobResult, int] = field(default_factory=dict)

    def count(self, result: JobResult) -> int:
        return self.results.get(result, 0)

    def record(self, result: JobResult) -> None:
        self.results[result] = self.results.get(result, 0) + 1


class OutboxProcessor:
    """Drains pending outbox jobs.

    Several processors may run at once: a job is only worked on after a
    conditional update moves it from ``pending`` to ``processing`` under this
    instance's lock owner id, and completion writes are discarded if the
    lock has since been taken over.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        email_provider: IEmailProvider,
        identity_provider: IIdentityProvider,
        suppression: SuppressionChecker,
        batch_size: int = 50,
        backoff_base_seconds: int = 60,
        backoff_max_seconds: int = 3600,
        lock_timeout_seconds: int | None = None,
        app_base_url: str = "",
        instance_id: str | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._email_provider = email_provider
        self._identity_provider = identity_provider
        self._suppression = suppression
        self._batch_size = batch_size
        self._backoff_base_seconds = backoff_base_seconds
        self._backoff_max_seconds = backoff_max_seconds
        self._lock_timeout_seconds = lock_timeout_seconds
        self._app_base_url = app_base_url.rstrip("/")
        self.instance_id = instance_id or f"processor-{uuid.uuid4().hex[:12]}"
        self._clock = clock

    async def run_once(self) -> TickResult:
        """One scheduler tick: reclaim stale locks, then process a batch of due jobs."""
        tick = TickResult()
        now = self._clock()

        if self._lock_timeout_seconds is not None:
            tick.reclaimed = await self._reclaim_stale(now, self._lock_timeout_seconds)

        async with self._uow_factory() as uow:
            due = await uow.outbox.list_due(now, self._batch_size)
        tick.queried = len(due)

        for job in due:
            try:
                tick.record(await self.process_job(job))
            except Exception:
                logger.exception("outbox_job_processing_failed", job_id=job.id)

        logger.info(
            "outbox_processor_run",
            instance_id=self.instance_id,
            queried=tick.queried,
            reclaimed=tick.reclaimed,
            sent=tick.count(JobResult.SENT),
            retried=tick.count(JobResult.RETRY),
            dead=tick.count(JobResult.DEAD),
            skipped=tick.count(JobResult.SKIPPED),
        )
        return tick

    async def process_job(self, job: OutboxJob) -> JobResult:
        """Claim, dispatch and record the outcome for a single job."""
        now = self._clock()
        if not await self._claim(job.id, now):
            return JobResult.SKIPPED

        job.status = OutboxStatus.PROCESSING
        job.locked_at = now
        job.lock_owner = self.instance_id

        try:
            outcome = await self._dispatch(job)
        except Exception as e:
            logger.exception("outbox_dispatch_error", job_id=job.id)
            outcome = DispatchOutcome.failure(DispatchErrorCode.SEND_FAILED, str(e) or "Unknown")

        return await self._complete(job, outcome)

    async def _reclaim_stale(self, now: datetime, timeout_seconds: int) -> int:
        cutoff = now - timedelta(seconds=timeout_seconds)
        async with self._uow_factory() as uow:
            reclaimed = await uow.outbox.reclaim_stale(cutoff, now)
            await uow.commit()
        if reclaimed:
            logger.warning(
                "outbox_stale_locks_reclaimed",
                count=reclaimed,
                locked_before=cutoff.isoformat(),
            )
        return reclaimed

    async def _claim(self, job_id: str, now: datetime) -> bool:
        try:
            async with self._uow_factory() as uow:
                claimed = await uow.outbox.claim(job_id, self.instance_id, now)
                await uow.commit()
        except Exception:
            logger.warning("outbox_claim_failed", job_id=job_id, exc_info=True)
            return False

        if not claimed:
            logger.debug("outbox_claim_lost", job_id=job_id, instance_id=self.instance_id)
        return claimed

    async def _dispatch(self, job: OutboxJob) -> DispatchOutcome:
        async with self._uow_factory() as uow:
            record = await uow.notifications.find_for_dispatch(
                job.org_id, job.event_id, job.recipient_uid, NotificationChannel.EMAIL
            )

        if record is None:
            return DispatchOutcome.failure(
                DispatchErrorCode.NOTIFICATION_NOT_FOUND, "Notification record not found"
            )

        if record.status not in (NotificationStatus.PENDING, NotificationStatus.FAILED):
            # Already sent or suppressed by an earlier attempt
            return DispatchOutcome(ok=True)

        try:
            profile = await self._identity_provider.get_user(job.recipient_uid)
        except Exception as e:
            return DispatchOutcome.failure(
                DispatchErrorCode.IDENTITY_LOOKUP_FAILED,
                str(e) or "Failed to get user email",
                record.id,
            )

        email = profile.email if profile else None
        if not email:
            return DispatchOutcome.failure(
                DispatchErrorCode.NO_EMAIL, "User has no email", record.id
            )

        if await self._suppression.is_suppressed(job.org_id, email):
            logger.info("outbox_recipient_suppressed", job_id=job.id, org_id=job.org_id)
            return DispatchOutcome(
                ok=True,
                notification_id=record.id,
                notification_status=NotificationStatus.SUPPRESSED,
            )

        template = get_default_template(record.template_id)
        rendered = render_template(
            template,
            {
                "title": record.title or record.body_preview or "Update",
                "body": record.body_preview,
                "link": f"{self._app_base_url}{record.deep_link}",
                "recipientName": (profile.short_name if profile else None) or "there",
            },
        )
        if not rendered.ok:
            return DispatchOutcome.failure(
                DispatchErrorCode.TEMPLATE_RENDER_FAILED,
                rendered.error or "Template render failed",
                record.id,
            )

        result = await self._email_provider.send(
            EmailMessage(
                to=email,
                subject=rendered.subject,
                html=rendered.html,
                text=rendered.text,
                idempotency_key=job.id,
            )
        )
        if not result.ok:
            return DispatchOutcome.failure(
                DispatchErrorCode.SEND_FAILED, result.error or "Send failed", record.id
            )

        return DispatchOutcome(
            ok=True,
            notification_id=record.id,
            notification_status=NotificationStatus.SENT,
        )

    async def _complete(self, job: OutboxJob, outcome: DispatchOutcome) -> JobResult:
        now = self._clock()
        job.locked_at = None
        job.lock_owner = None
        job.updated_at = now

        if outcome.ok:
            job.status = OutboxStatus.SENT
            job.sent_at = now
            result = JobResult.SENT
        else:
            job.attempts += 1
            job.last_error = OutboxError(
                code=outcome.error_code.value if outcome.error_code else None,
                message=outcome.error_message or "Unknown",
                at=now,
            )
            if outcome.permanent or job.attempts >= job.max_attempts:
                job.status = OutboxStatus.DEAD
                result = JobResult.DEAD
            else:
                job.status = OutboxStatus.PENDING
                job.next_attempt_at = now + backoff_delay(
                    job.attempts, self._backoff_base_seconds, self._backoff_max_seconds
                )
                result = JobResult.RETRY

        async with self._uow_factory() as uow:
            saved = await uow.outbox.save_attempt(job, expected_owner=self.instance_id)
            if not saved:
                await uow.rollback()
                logger.warning("outbox_lock_lost", job_id=job.id, instance_id=self.instance_id)
                return JobResult.LOCK_LOST

            if outcome.notification_id and outcome.notification_status:
                await uow.notifications.update_status(
                    outcome.notification_id,
                    outcome.notification_status,
                    now,
                    sent_at=now if outcome.notification_status == NotificationStatus.SENT else None,
                    error_message=(
                        outcome.error_message
                        if outcome.notification_status == NotificationStatus.FAILED
                        else None
                    ),
                )
            await uow.commit()

        self._log_result(job, result, outcome)
        return result

    def _log_result(self, job: OutboxJob, result: JobResult, outcome: DispatchOutcome) -> None:
        if result == JobResult.SENT:
            logger.info("outbox_job_sent", job_id=job.id, attempts=job.attempts)
        elif result == JobResult.RETRY:
            logger.info(
                "outbox_job_retry_scheduled",
                job_id=job.id,
                attempts=job.attempts,
                error_code=outcome.error_code,
                next_attempt_at=job.next_attempt_at.isoformat(),
            )
        else:
            logger.warning(
                "outbox_job_dead",
                job_id=job.id,
                attempts=job.attempts,
                error_code=outcome.error_code,
                error=outcome.error_message,
            )
