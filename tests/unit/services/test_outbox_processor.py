"""Unit tests for the outbox processor dispatch and retry policy."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from domain.entities.email import EmailSendResult
from domain.entities.notification import (
    NotificationCategory,
    NotificationChannel,
    NotificationRecord,
    NotificationStatus,
)
from domain.entities.outbox import OutboxJob, OutboxStatus
from domain.entities.profile import Profile
from domain.services.outbox_processor import (
    DispatchErrorCode,
    JobResult,
    OutboxProcessor,
)
from domain.services.suppression import SuppressionChecker

NOW = datetime(2026, 3, 1, 9, 0, 0)


def _job(**kwargs) -> OutboxJob:
    defaults = dict(org_id="org_1", event_id="evt_1", recipient_uid="u1", next_attempt_at=NOW)
    defaults.update(kwargs)
    return OutboxJob(**defaults)


def _record(status: NotificationStatus = NotificationStatus.PENDING) -> NotificationRecord:
    return NotificationRecord(
        org_id="org_1",
        recipient_uid="u1",
        event_id="evt_1",
        channel=NotificationChannel.EMAIL,
        category=NotificationCategory.TASK,
        title="Task assigned to you: Draft",
        body_preview='Alice assigned you to "Draft".',
        deep_link="/tasks/details?taskId=t1",
        template_id="task.assigned",
        template_version=1,
        status=status,
    )


@pytest.fixture
def email_provider() -> AsyncMock:
    provider = AsyncMock()
    provider.send.return_value = EmailSendResult(ok=True)
    return provider


@pytest.fixture
def identity() -> AsyncMock:
    identity = AsyncMock()
    identity.get_user.return_value = Profile(uid="u1", email="bob@example.com", display_name="Bob")
    return identity


@pytest.fixture
def store(uow):
    uow.outbox.claim.return_value = True
    uow.outbox.save_attempt.return_value = True
    uow.outbox.reclaim_stale.return_value = 0
    uow.notifications.find_for_dispatch.return_value = _record()
    uow.notifications.is_suppressed.return_value = False
    return uow


@pytest.fixture
def processor(store, email_provider, identity) -> OutboxProcessor:
    return OutboxProcessor(
        lambda: store,
        email_provider=email_provider,
        identity_provider=identity,
        suppression=SuppressionChecker(lambda: store),
        app_base_url="https://app.example.com/",
        instance_id="worker-a",
        clock=lambda: NOW,
    )


class TestProcessJobSuccess:
    @pytest.mark.asyncio
    async def test_sends_and_marks_sent(self, processor, store, email_provider) -> None:
        job = _job()

        result = await processor.process_job(job)

        assert result == JobResult.SENT
        assert job.status == OutboxStatus.SENT
        assert job.sent_at == NOW
        assert job.lock_owner is None

        message = email_provider.send.call_args[0][0]
        assert message.to == "bob@example.com"
        assert message.subject == "Task assigned to you: Draft"
        assert message.idempotency_key == job.id
        assert "https://app.example.com/tasks/details?taskId=t1" in (message.text or "")
        assert "Hi Bob" in message.html

        store.outbox.save_attempt.assert_called_once_with(job, expected_owner="worker-a")
        args, kwargs = store.notifications.update_status.call_args
        assert args[1] == NotificationStatus.SENT
        assert kwargs["sent_at"] == NOW
        assert store.committed

    @pytest.mark.asyncio
    async def test_lost_claim_skips(self, processor, store, email_provider) -> None:
        store.outbox.claim.return_value = False

        assert await processor.process_job(_job()) == JobResult.SKIPPED
        email_provider.send.assert_not_called()
        store.outbox.save_attempt.assert_not_called()

    @pytest.mark.asyncio
    async def test_suppressed_address_completes_without_sending(
        self, processor, store, email_provider
    ) -> None:
        store.notifications.is_suppressed.return_value = True
        job = _job()

        assert await processor.process_job(job) == JobResult.SENT
        email_provider.send.assert_not_called()
        assert job.status == OutboxStatus.SENT
        assert store.notifications.update_status.call_args[0][1] == NotificationStatus.SUPPRESSED
        store.notifications.is_suppressed.assert_called_once_with("org_1", "bob@example.com")

    @pytest.mark.asyncio
    async def test_already_sent_record_is_not_resent(
        self, processor, store, email_provider
    ) -> None:
        store.notifications.find_for_dispatch.return_value = _record(NotificationStatus.SENT)

        assert await processor.process_job(_job()) == JobResult.SENT
        email_provider.send.assert_not_called()
        store.notifications.update_status.assert_not_called()


class TestProcessJobFailures:
    @pytest.mark.asyncio
    async def test_send_failure_schedules_retry(self, processor, store, email_provider) -> None:
        email_provider.send.return_value = EmailSendResult(ok=False, error="SendGrid 500: boom")
        job = _job()

        result = await processor.process_job(job)

        assert result == JobResult.RETRY
        assert job.status == OutboxStatus.PENDING
        assert job.attempts == 1
        assert job.next_attempt_at == NOW + timedelta(seconds=60)
        assert job.last_error is not None
        assert job.last_error.code == DispatchErrorCode.SEND_FAILED
        assert job.last_error.message == "SendGrid 500: boom"
        args, kwargs = store.notifications.update_status.call_args
        assert args[1] == NotificationStatus.FAILED
        assert kwargs["error_message"] == "SendGrid 500: boom"

    @pytest.mark.asyncio
    async def test_backoff_grows_with_attempts(self, processor, email_provider) -> None:
        email_provider.send.return_value = EmailSendResult(ok=False, error="x")
        job = _job(attempts=2)

        await processor.process_job(job)

        assert job.attempts == 3
        assert job.next_attempt_at == NOW + timedelta(seconds=240)

    @pytest.mark.asyncio
    async def test_last_allowed_attempt_goes_dead(self, processor, email_provider) -> None:
        email_provider.send.return_value = EmailSendResult(ok=False, error="x")
        job = _job(attempts=4, max_attempts=5)

        assert await processor.process_job(job) == JobResult.DEAD
        assert job.status == OutboxStatus.DEAD
        assert job.attempts == 5

    @pytest.mark.asyncio
    async def test_provider_exception_is_a_send_failure(
        self, processor, email_provider
    ) -> None:
        email_provider.send.side_effect = RuntimeError("socket closed")
        job = _job()

        assert await processor.process_job(job) == JobResult.RETRY
        assert job.last_error.code == DispatchErrorCode.SEND_FAILED
        assert job.last_error.message == "socket closed"

    @pytest.mark.asyncio
    async def test_identity_error_is_transient(self, processor, identity) -> None:
        identity.get_user.side_effect = RuntimeError("identity timeout")
        job = _job()

        assert await processor.process_job(job) == JobResult.RETRY
        assert job.last_error.code == DispatchErrorCode.IDENTITY_LOOKUP_FAILED

    @pytest.mark.asyncio
    async def test_missing_email_is_permanent(self, processor, identity, email_provider) -> None:
        identity.get_user.return_value = Profile(uid="u1", email=None)
        job = _job()

        assert await processor.process_job(job) == JobResult.DEAD
        assert job.attempts == 1
        assert job.last_error.code == DispatchErrorCode.NO_EMAIL
        email_provider.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_record_is_permanent(self, processor, store) -> None:
        store.notifications.find_for_dispatch.return_value = None
        job = _job()

        assert await processor.process_job(job) == JobResult.DEAD
        assert job.last_error.code == DispatchErrorCode.NOTIFICATION_NOT_FOUND
        store.notifications.update_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_lock_lost_discards_outcome(self, processor, store) -> None:
        store.outbox.save_attempt.return_value = False

        assert await processor.process_job(_job()) == JobResult.LOCK_LOST
        assert store.rolled_back
        store.notifications.update_status.assert_not_called()


class TestRunOnce:
    @pytest.mark.asyncio
    async def test_one_failing_job_does_not_stop_the_batch(self, processor, store) -> None:
        store.outbox.list_due.return_value = [_job(recipient_uid="u1"), _job(recipient_uid="u2")]
        store.outbox.save_attempt.side_effect = [RuntimeError("write failed"), True]

        tick = await processor.run_once()

        assert tick.queried == 2
        assert tick.count(JobResult.SENT) == 1
        store.outbox.reclaim_stale.assert_not_called()

    @pytest.mark.asyncio
    async def test_reclaims_stale_locks_when_configured(
        self, store, email_provider, identity
    ) -> None:
        store.outbox.list_due.return_value = []
        store.outbox.reclaim_stale.return_value = 2
        processor = OutboxProcessor(
            lambda: store,
            email_provider=email_provider,
            identity_provider=identity,
            suppression=SuppressionChecker(lambda: store),
            lock_timeout_seconds=300,
            clock=lambda: NOW,
        )

        tick = await processor.run_once()

        assert tick.reclaimed == 2
        store.outbox.reclaim_stale.assert_called_once_with(NOW - timedelta(seconds=300), NOW)
        store.outbox.list_due.assert_called_once_with(NOW, 50)
