"""Domain event emission and replay."""

from collections.abc import Callable
from typing import Any, Protocol

import structlog

from core.exceptions import EventNotFoundError
from domain.entities.domain_event import DOMAIN_EVENTS_STREAM, DomainEvent, EventActor
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class IEventPublisher(Protocol):
    async def publish(self, stream: str, event: DomainEvent) -> None:
        ...


class DomainEventService:
    """Appends immutable domain events and announces them to subscribers.

    The event is committed before it is published, so subscriber failures
    never undo the business mutation that produced it.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        publisher: IEventPublisher,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher

    async def emit(
        self,
        org_id: str,
        event_type: str,
        entity_type: str,
        entity_id: str,
        actor: EventActor,
        payload: dict[str, Any] | None = None,
        matter_id: str | None = None,
    ) -> DomainEvent:
        event = DomainEvent(
            org_id=org_id,
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor,
            matter_id=matter_id,
            payload=payload or {},
        )

        async with self._uow_factory() as uow:
            await uow.events.append(event)
            await uow.commit()

        logger.info(
            "domain_event_appended",
            event_id=event.event_id,
            event_type=event_type,
            org_id=org_id,
        )
        await self._publisher.publish(DOMAIN_EVENTS_STREAM, event)
        return event

    async def replay(self, event_id: str) -> DomainEvent:
        """Publish a stored event again (subscribers must be idempotent)."""
        async with self._uow_factory() as uow:
            event = await uow.events.get(event_id)
        if event is None:
            raise EventNotFoundError(event_id)

        logger.info("domain_event_replayed", event_id=event_id, event_type=event.event_type)
        await self._publisher.publish(DOMAIN_EVENTS_STREAM, event)
        return event
