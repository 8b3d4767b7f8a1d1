"""SQLAlchemy implementation of the domain event log."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.domain_event import DomainEvent, EventActor
from infrastructure.database.models import DomainEventModel


class SQLAlchemyDomainEventRepository:
    """SQLAlchemy implementation of IDomainEventRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(self, event: DomainEvent) -> DomainEvent:
        """Persist a new event."""
        model = DomainEventModel(
            event_id=event.event_id,
            org_id=event.org_id,
            event_type=event.event_type,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            matter_id=event.matter_id,
            actor_type=event.actor.actor_type,
            actor_id=event.actor.actor_id,
            payload=dict(event.payload),
            created_at=event.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return event

    async def get(self, event_id: str) -> DomainEvent | None:
        """Get an event by ID."""
        stmt = select(DomainEventModel).where(DomainEventModel.event_id == event_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    def _to_entity(self, model: DomainEventModel) -> DomainEvent:
        """Convert DomainEventModel to domain entity."""
        return DomainEvent(
            event_id=model.event_id,
            org_id=model.org_id,
            event_type=model.event_type,
            entity_type=model.entity_type,
            entity_id=model.entity_id,
            matter_id=model.matter_id,
            actor=EventActor(actor_type=model.actor_type, actor_id=model.actor_id),
            payload=model.payload or {},
            created_at=model.created_at,
        )
