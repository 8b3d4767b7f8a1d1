"""Turns a domain event into the set of candidate recipients."""

import structlog

from domain.entities.domain_event import ORG_ACTIVITY_EVENT_TYPES, DomainEvent, EventTypes
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()

# Payload keys that carry a user id worth notifying
PAYLOAD_RECIPIENT_KEYS: tuple[str, ...] = ("assigneeId", "createdBy", "uploadedBy")


class RecipientResolver:
    """Collects candidate recipients for an event, never including the actor.

    Sources, in order:
        1. user ids embedded in the payload (``assigneeId``, ``createdBy``, ``uploadedBy``)
        2. the linked matter's creator and explicit participants
        3. org admins and owners, for org-activity events and ``user.joined``
    """

    async def resolve(self, uow: IUnitOfWork, event: DomainEvent) -> set[str]:
        actor_id = event.actor.actor_id
        candidates: set[str] = set()

        def add(uid: object) -> None:
            if isinstance(uid, str) and uid and uid != actor_id:
                candidates.add(uid)

        for key in PAYLOAD_RECIPIENT_KEYS:
            add(event.payload.get(key))

        matter_id = event.resolved_matter_id
        if matter_id:
            matter = await uow.directory.get_matter(event.org_id, matter_id)
            if matter is not None:
                add(matter.created_by)
            for uid in await uow.directory.list_participant_uids(event.org_id, matter_id):
                add(uid)

        if (
            event.event_type == EventTypes.USER_JOINED
            or event.event_type in ORG_ACTIVITY_EVENT_TYPES
        ):
            for uid in await uow.directory.list_admin_uids(event.org_id):
                add(uid)

        logger.debug(
            "recipients_resolved",
            event_id=event.event_id,
            event_type=event.event_type,
            candidate_count=len(candidates),
        )
        return candidates
