"""Integration tests for the outbox administration endpoints."""

from datetime import datetime

import pytest
from httpx import AsyncClient

from domain.entities.outbox import OutboxError, OutboxJob, OutboxStatus

ORG = "org_acme"
BASE = f"/api/v1/orgs/{ORG}/outbox"


@pytest.fixture
async def jobs(directory, uow_factory) -> dict[str, str]:
    """One dead, one pending and one sent job, plus a dead job in another org."""
    await directory.member("u_member")
    await directory.org("org_other", "Other Firm")
    failed_at = datetime(2026, 3, 2, 9, 5, 0)

    dead = OutboxJob(
        org_id=ORG,
        event_id="evt_dead",
        recipient_uid="u_member",
        status=OutboxStatus.DEAD,
        attempts=5,
        last_error=OutboxError(
            message="SendGrid 503: unavailable", at=failed_at, code="SEND_FAILED"
        ),
    )
    pending = OutboxJob(org_id=ORG, event_id="evt_pending", recipient_uid="u_member")
    sent = OutboxJob(
        org_id=ORG,
        event_id="evt_sent",
        recipient_uid="u_member",
        status=OutboxStatus.SENT,
        sent_at=failed_at,
    )
    foreign = OutboxJob(
        org_id="org_other",
        event_id="evt_foreign",
        recipient_uid="u_elsewhere",
        status=OutboxStatus.DEAD,
    )
    async with uow_factory() as uow:
        await uow.outbox.create_batch([dead, pending, sent, foreign])
        await uow.commit()

    return {"dead": dead.id, "pending": pending.id, "sent": sent.id, "foreign": foreign.id}


class TestListOutboxJobs:
    @pytest.mark.asyncio
    async def test_admin_lists_org_jobs(self, api_client: AsyncClient, auth_headers, jobs) -> None:
        response = await api_client.get(BASE, headers=auth_headers)

        assert response.status_code == 200
        ids = {j["id"] for j in response.json()["data"]}
        assert ids == {jobs["dead"], jobs["pending"], jobs["sent"]}

    @pytest.mark.asyncio
    async def test_filter_dead_jobs(self, api_client: AsyncClient, auth_headers, jobs) -> None:
        response = await api_client.get(BASE, params={"status": "dead"}, headers=auth_headers)

        (job,) = response.json()["data"]
        assert job["id"] == jobs["dead"]
        assert job["attempts"] == 5
        assert job["job_type"] == "notification_dispatch"
        assert job["last_error"]["code"] == "SEND_FAILED"
        assert job["last_error"]["message"] == "SendGrid 503: unavailable"

    @pytest.mark.asyncio
    async def test_invalid_status_filter(self, api_client: AsyncClient, auth_headers, jobs) -> None:
        response = await api_client.get(BASE, params={"status": "lost"}, headers=auth_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_member_is_forbidden(
        self, api_client: AsyncClient, auth_headers_for, jobs
    ) -> None:
        response = await api_client.get(BASE, headers=auth_headers_for("u_member"))

        assert response.status_code == 403
        assert response.json()["error_code"] == "INSUFFICIENT_PERMISSIONS"


class TestRequeue:
    @pytest.mark.asyncio
    async def test_requeue_dead_job(self, api_client: AsyncClient, auth_headers, jobs) -> None:
        response = await api_client.post(f"{BASE}/{jobs['dead']}/requeue", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending"
        assert data["attempts"] == 0
        # Previous failure stays visible for triage
        assert data["last_error"]["code"] == "SEND_FAILED"

        pending = await api_client.get(BASE, params={"status": "pending"}, headers=auth_headers)
        assert jobs["dead"] in {j["id"] for j in pending.json()["data"]}

    @pytest.mark.asyncio
    async def test_requeue_non_dead_job_conflicts(
        self, api_client: AsyncClient, auth_headers, jobs
    ) -> None:
        response = await api_client.post(f"{BASE}/{jobs['sent']}/requeue", headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error_code"] == "OUTBOX_JOB_NOT_REQUEUEABLE"

    @pytest.mark.asyncio
    async def test_requeue_unknown_or_foreign_job(
        self, api_client: AsyncClient, auth_headers, jobs
    ) -> None:
        missing = await api_client.post(f"{BASE}/notif_email:nope/requeue", headers=auth_headers)
        foreign = await api_client.post(
            f"{BASE}/{jobs['foreign']}/requeue", headers=auth_headers
        )

        assert missing.status_code == 404
        assert foreign.status_code == 404
        assert foreign.json()["error_code"] == "OUTBOX_JOB_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_member_cannot_requeue(
        self, api_client: AsyncClient, auth_headers_for, jobs
    ) -> None:
        response = await api_client.post(
            f"{BASE}/{jobs['dead']}/requeue", headers=auth_headers_for("u_member")
        )

        assert response.status_code == 403
