"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock

import pytest

from domain.entities.domain_event import DomainEvent, EventActor


class FakeUnitOfWork:
    """Fake Unit of Work with repository mocks for unit testing."""

    def __init__(self) -> None:
        self.notifications = AsyncMock()
        self.outbox = AsyncMock()
        self.events = AsyncMock()
        self.directory = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def org_id() -> str:
    return "org_1"


@pytest.fixture
def actor_id() -> str:
    """Actor uid (distinct from any recipient)."""
    return "user_actor"


def _make_event(
    event_type: str = "task.created",
    org_id: str = "org_1",
    actor_id: str = "user_actor",
    entity_type: str = "task",
    entity_id: str = "task_1",
    matter_id: str | None = None,
    payload: dict[str, Any] | None = None,
) -> DomainEvent:
    """Build a domain event with sensible defaults."""
    return DomainEvent(
        org_id=org_id,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        actor=EventActor(actor_type="user", actor_id=actor_id),
        matter_id=matter_id,
        payload=payload or {},
        event_id="evt_1",
    )


@pytest.fixture
def make_event() -> Any:
    """Factory for domain events."""
    return _make_event
