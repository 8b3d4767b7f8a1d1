"""Domain event entity and the event type catalog."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

DOMAIN_EVENTS_STREAM = "domain_events"

# --- Event Type Constants ---
# Format: {entity_type}.{verb}


class EventTypes:
    """Domain event type constants using dot-notation."""

    USER_INVITED = "user.invited"
    USER_JOINED = "user.joined"

    MATTER_CREATED = "matter.created"
    MATTER_UPDATED = "matter.updated"

    TASK_CREATED = "task.created"
    TASK_UPDATED = "task.updated"
    TASK_ASSIGNED = "task.assigned"
    TASK_COMPLETED = "task.completed"

    DOCUMENT_UPLOADED = "document.uploaded"

    INVOICE_CREATED = "invoice.created"
    INVOICE_SENT = "invoice.sent"
    PAYMENT_RECEIVED = "payment.received"

    CLIENT_CREATED = "client.created"

    COMMENT_ADDED = "comment.added"
    COMMENT_UPDATED = "comment.updated"
    COMMENT_DELETED = "comment.deleted"


# Event types the notification pipeline reacts to. Anything else (internal
# bookkeeping such as time-entry edits) is ignored on purpose.
ROUTED_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EventTypes.USER_INVITED,
        EventTypes.USER_JOINED,
        EventTypes.MATTER_CREATED,
        EventTypes.MATTER_UPDATED,
        EventTypes.TASK_CREATED,
        EventTypes.TASK_UPDATED,
        EventTypes.TASK_ASSIGNED,
        EventTypes.TASK_COMPLETED,
        EventTypes.DOCUMENT_UPLOADED,
        EventTypes.INVOICE_CREATED,
        EventTypes.INVOICE_SENT,
        EventTypes.PAYMENT_RECEIVED,
        EventTypes.CLIENT_CREATED,
        EventTypes.COMMENT_ADDED,
        EventTypes.COMMENT_UPDATED,
        EventTypes.COMMENT_DELETED,
    }
)

# Org activity that also fans out to admins/owners so small firms always
# have somebody watching.
ORG_ACTIVITY_EVENT_TYPES: frozenset[str] = frozenset(
    {
        EventTypes.MATTER_CREATED,
        EventTypes.MATTER_UPDATED,
        EventTypes.TASK_CREATED,
        EventTypes.TASK_UPDATED,
        EventTypes.TASK_COMPLETED,
        EventTypes.DOCUMENT_UPLOADED,
        EventTypes.INVOICE_CREATED,
        EventTypes.INVOICE_SENT,
        EventTypes.PAYMENT_RECEIVED,
        EventTypes.CLIENT_CREATED,
        EventTypes.COMMENT_ADDED,
        EventTypes.COMMENT_UPDATED,
        EventTypes.COMMENT_DELETED,
    }
)


@dataclass(frozen=True, slots=True)
class EventActor:
    """Who caused the event (a user uid, or ``system``)."""

    actor_type: str
    actor_id: str


@dataclass(frozen=True)
class DomainEvent:
    """Immutable record of a single business-state change."""

    org_id: str
    event_type: str
    entity_type: str
    entity_id: str
    actor: EventActor
    event_id: str = field(default_factory=lambda: str(uuid4()))
    matter_id: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def resolved_matter_id(self) -> str | None:
        """Parent matter: explicit link first, then ``caseId``/``matterId`` in the payload."""
        for candidate in (
            self.matter_id,
            self.payload.get("caseId"),
            self.payload.get("matterId"),
        ):
            if isinstance(candidate, str) and candidate:
                return candidate
        return None
