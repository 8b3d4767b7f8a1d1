"""Integration tests for the notification feed and preference endpoints."""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient

from domain.entities.notification import (
    NotificationCategory,
    NotificationChannel,
    NotificationRecord,
)

ORG = "org_acme"
BASE = f"/api/v1/orgs/{ORG}"


@pytest.fixture
async def feed(directory, uow_factory) -> dict[str, str]:
    """Three in-app notifications and one e-mail record for the owner, one for someone else."""
    await directory.member("u_other")
    start = datetime(2026, 3, 2, 9, 0, 0)

    def record(event_id, category, minutes, uid="user_owner", channel=NotificationChannel.IN_APP):
        return NotificationRecord(
            org_id=ORG,
            recipient_uid=uid,
            event_id=event_id,
            channel=channel,
            category=category,
            title=f"Title {event_id}",
            body_preview=f"Body {event_id}",
            deep_link="/home",
            created_at=start + timedelta(minutes=minutes),
            updated_at=start + timedelta(minutes=minutes),
        )

    records = [
        record("evt_1", NotificationCategory.TASK, 0),
        record("evt_2", NotificationCategory.MATTER, 1),
        record("evt_3", NotificationCategory.TASK, 2),
        record("evt_3", NotificationCategory.TASK, 2, channel=NotificationChannel.EMAIL),
        record("evt_4", NotificationCategory.TASK, 3, uid="u_other"),
    ]
    async with uow_factory() as uow:
        await uow.notifications.create_batch(records)
        await uow.commit()

    return {
        "oldest": records[0].id,
        "middle": records[1].id,
        "newest": records[2].id,
        "others": records[4].id,
    }


class TestListNotifications:
    @pytest.mark.asyncio
    async def test_lists_own_in_app_newest_first(
        self, api_client: AsyncClient, auth_headers, feed
    ) -> None:
        response = await api_client.get(f"{BASE}/notifications", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [n["id"] for n in data] == [feed["newest"], feed["middle"], feed["oldest"]]
        assert data[0]["title"] == "Title evt_3"
        assert data[0]["category"] == "task"
        assert data[0]["status"] == "pending"
        assert data[0]["read_at"] is None

    @pytest.mark.asyncio
    async def test_filters_by_category_and_channel(
        self, api_client: AsyncClient, auth_headers, feed
    ) -> None:
        by_category = await api_client.get(
            f"{BASE}/notifications", params={"category": "matter"}, headers=auth_headers
        )
        by_channel = await api_client.get(
            f"{BASE}/notifications", params={"channel": "email"}, headers=auth_headers
        )

        assert [n["id"] for n in by_category.json()["data"]] == [feed["middle"]]
        assert len(by_channel.json()["data"]) == 1
        assert by_channel.json()["data"][0]["id"].startswith("notif_email:")

    @pytest.mark.asyncio
    async def test_limit_and_unknown_category(
        self, api_client: AsyncClient, auth_headers, feed
    ) -> None:
        limited = await api_client.get(
            f"{BASE}/notifications", params={"limit": 1}, headers=auth_headers
        )
        unknown = await api_client.get(
            f"{BASE}/notifications", params={"category": "billing"}, headers=auth_headers
        )
        too_big = await api_client.get(
            f"{BASE}/notifications", params={"limit": 500}, headers=auth_headers
        )

        assert [n["id"] for n in limited.json()["data"]] == [feed["newest"]]
        assert unknown.status_code == 400
        assert unknown.json()["error_code"] == "INVALID_CATEGORY"
        assert too_big.status_code == 422
        assert too_big.json()["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_non_member_is_forbidden(
        self, api_client: AsyncClient, auth_headers_for, feed
    ) -> None:
        response = await api_client.get(
            f"{BASE}/notifications", headers=auth_headers_for("u_stranger")
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_MEMBER"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, api_client: AsyncClient, feed) -> None:
        response = await api_client.get(f"{BASE}/notifications")

        assert response.status_code == 401


class TestReadState:
    @pytest.mark.asyncio
    async def test_mark_read_updates_feed_and_count(
        self, api_client: AsyncClient, auth_headers, feed
    ) -> None:
        before = await api_client.get(f"{BASE}/notifications/unread-count", headers=auth_headers)
        assert before.json() == {"count": 3}

        response = await api_client.patch(
            f"{BASE}/notifications/{feed['middle']}/read", headers=auth_headers
        )
        assert response.status_code == 204

        after = await api_client.get(f"{BASE}/notifications/unread-count", headers=auth_headers)
        assert after.json() == {"count": 2}

        read = await api_client.get(
            f"{BASE}/notifications", params={"read_status": "read"}, headers=auth_headers
        )
        (only,) = read.json()["data"]
        assert only["id"] == feed["middle"]
        assert only["status"] == "read"
        assert only["read_at"] is not None

        unread = await api_client.get(
            f"{BASE}/notifications", params={"read_status": "unread"}, headers=auth_headers
        )
        assert feed["middle"] not in {n["id"] for n in unread.json()["data"]}

    @pytest.mark.asyncio
    async def test_mark_read_of_someone_elses_notification(
        self, api_client: AsyncClient, auth_headers, feed
    ) -> None:
        response = await api_client.patch(
            f"{BASE}/notifications/{feed['others']}/read", headers=auth_headers
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOTIFICATION_ACCESS_DENIED"

    @pytest.mark.asyncio
    async def test_mark_read_missing_notification(
        self, api_client: AsyncClient, auth_headers, feed
    ) -> None:
        response = await api_client.patch(
            f"{BASE}/notifications/notif_in_app:nope/read", headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOTIFICATION_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_mark_all_read(self, api_client: AsyncClient, auth_headers, feed) -> None:
        response = await api_client.post(
            f"{BASE}/notifications/mark-all-read", headers=auth_headers
        )
        again = await api_client.post(f"{BASE}/notifications/mark-all-read", headers=auth_headers)
        count = await api_client.get(f"{BASE}/notifications/unread-count", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"count": 3}
        assert again.json() == {"count": 0}
        assert count.json() == {"count": 0}


class TestPreferences:
    @pytest.mark.asyncio
    async def test_defaults_have_every_category_enabled(
        self, api_client: AsyncClient, auth_headers, directory
    ) -> None:
        response = await api_client.get(f"{BASE}/notification-preferences", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {c.value for c in NotificationCategory}
        assert all(p == {"in_app": True, "email": True} for p in data.values())

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_channel(
        self, api_client: AsyncClient, auth_headers, directory
    ) -> None:
        first = await api_client.put(
            f"{BASE}/notification-preferences/task", json={"email": False}, headers=auth_headers
        )
        second = await api_client.put(
            f"{BASE}/notification-preferences/task", json={"in_app": False}, headers=auth_headers
        )
        listed = await api_client.get(f"{BASE}/notification-preferences", headers=auth_headers)

        assert first.status_code == 200
        assert first.json() == {"in_app": True, "email": False}
        assert second.json() == {"in_app": False, "email": False}
        assert listed.json()["data"]["task"] == {"in_app": False, "email": False}
        assert listed.json()["data"]["matter"] == {"in_app": True, "email": True}

    @pytest.mark.asyncio
    async def test_unknown_category_is_rejected(
        self, api_client: AsyncClient, auth_headers, directory
    ) -> None:
        response = await api_client.put(
            f"{BASE}/notification-preferences/billing", json={"email": False}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_CATEGORY"

    @pytest.mark.asyncio
    async def test_empty_update_is_a_validation_error(
        self, api_client: AsyncClient, auth_headers, directory
    ) -> None:
        response = await api_client.put(
            f"{BASE}/notification-preferences/task", json={}, headers=auth_headers
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
