"""Domain event repository protocol."""

from typing import Protocol

from domain.entities.domain_event import DomainEvent


class IDomainEventRepository(Protocol):
    """Append-only store of domain events."""

    async def append(self, event: DomainEvent) -> DomainEvent:
        """Persist a new event."""
        ...

    async def get(self, event_id: str) -> DomainEvent | None:
        """Get an event by ID."""
        ...
