"""Routes newly appended domain events into notification records."""

from collections.abc import Callable
from datetime import datetime

import structlog

from domain.entities.domain_event import ROUTED_EVENT_TYPES, DomainEvent
from domain.entities.notification import event_type_to_category
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.access_filter import AccessFilter
from domain.services.deep_link import build_deep_link
from domain.services.notification_content import NotificationContext, build_notification_content
from domain.services.notification_writer import NotificationWriter, WriteResult
from domain.services.recipient_resolver import RecipientResolver

logger = structlog.get_logger()


class NotificationRouter:
    """Event listener for the ``domain_events`` stream.

    For each routed event: resolve candidates, drop those without matter
    access, then write records and outbox jobs in one transaction. Nothing is
    retried here; a failure leaves the event without notifications.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        resolver: RecipientResolver,
        access_filter: AccessFilter,
        writer: NotificationWriter,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._resolver = resolver
        self._access_filter = access_filter
        self._writer = writer
        self._clock = clock

    async def handle(self, event: DomainEvent) -> WriteResult | None:
        """Run the pipeline for one event. Returns None for ignored event types."""
        if event.event_type not in ROUTED_EVENT_TYPES:
            logger.debug("event_not_routed", event_id=event.event_id, event_type=event.event_type)
            return None

        matter_id = event.resolved_matter_id
        category = event_type_to_category(event.event_type)
        ctx = await self._load_context(event, matter_id)

        async with self._uow_factory() as uow:
            candidates = await self._resolver.resolve(uow, event)

        recipients = await self._access_filter.filter(event.org_id, matter_id, candidates)
        if not recipients:
            logger.info(
                "notification_routing_no_recipients",
                event_id=event.event_id,
                event_type=event.event_type,
                candidate_count=len(candidates),
            )
            return WriteResult()

        content = build_notification_content(event.event_type, event.payload, ctx)
        deep_link = build_deep_link(event.entity_type, event.entity_id, matter_id)

        async with self._uow_factory() as uow:
            result = await self._writer.write(
                uow,
                event,
                recipients,
                category,
                content,
                deep_link,
                self._clock(),
            )
            await uow.commit()

        logger.info(
            "notification_routing_completed",
            event_id=event.event_id,
            event_type=event.event_type,
            recipient_count=len(recipients),
            filtered_out=len(candidates) - len(recipients),
            records_created=result.in_app_created + result.email_created,
            jobs_created=result.jobs_created,
        )
        return result

    async def _load_context(self, event: DomainEvent, matter_id: str | None) -> NotificationContext:
        """Actor name, matter title and client name. Lookup failures drop the detail."""
        actor_name: str | None = None
        matter_title: str | None = None
        client_name: str | None = None

        if event.actor.actor_id:
            try:
                async with self._uow_factory() as uow:
                    profile = await uow.directory.get_profile(event.actor.actor_id)
                actor_name = profile.short_name if profile else None
            except Exception:
                logger.warning("actor_lookup_failed", event_id=event.event_id, exc_info=True)

        if matter_id:
            try:
                async with self._uow_factory() as uow:
                    matter = await uow.directory.get_matter(event.org_id, matter_id)
                    if matter is not None:
                        matter_title = matter.title or None
                        if matter.client_id:
                            client = await uow.directory.get_client(event.org_id, matter.client_id)
                            client_name = client.label if client else None
            except Exception:
                logger.warning(
                    "matter_context_lookup_failed",
                    event_id=event.event_id,
                    matter_id=matter_id,
                    exc_info=True,
                )

        return NotificationContext(
            actor_name=actor_name,
            matter_title=matter_title,
            client_name=client_name,
        )
