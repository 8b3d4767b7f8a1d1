"""Title and body text for notifications, per event type."""

from dataclasses import dataclass
from typing import Any

from domain.entities.domain_event import EventTypes

MATTER_STATUS_LABELS: dict[str, str] = {
    "OPEN": "Open",
    "CLOSED": "Closed",
    "ARCHIVED": "Archived",
}
MATTER_VISIBILITY_LABELS: dict[str, str] = {
    "ORG_WIDE": "Org-wide",
    "PRIVATE": "Private",
}
TASK_STATUS_LABELS: dict[str, str] = {
    "PENDING": "Pending",
    "IN_PROGRESS": "In progress",
    "COMPLETED": "Completed",
    "CANCELLED": "Cancelled",
}
TASK_PRIORITY_LABELS: dict[str, str] = {
    "LOW": "Low",
    "MEDIUM": "Medium",
    "HIGH": "High",
}

# Length of the stored notification title column
TITLE_MAX_LENGTH = 500


@dataclass(frozen=True)
class NotificationContext:
    """Denormalized details looked up once per event and shared by all recipients."""

    actor_name: str | None = None
    matter_title: str | None = None
    client_name: str | None = None


@dataclass(frozen=True)
class NotificationContent:
    title: str
    body_preview: str


def _label(value: Any, labels: dict[str, str]) -> str:
    return labels.get(str(value), str(value))


def _changes(payload: dict[str, Any]) -> dict[str, Any] | None:
    changes = payload.get("changes")
    return changes if isinstance(changes, dict) else None


def _changed(change: Any) -> bool:
    """A ``{from, to}`` pair whose sides are both present and differ."""
    if not isinstance(change, dict):
        return False
    if "from" not in change or "to" not in change:
        return False
    return str(change["from"]) != str(change["to"])


def format_matter_changes(payload: dict[str, Any]) -> str | None:
    """Describe ``payload.changes`` for a matter update, or None if nothing readable changed."""
    changes = _changes(payload)
    if changes is None:
        return None

    parts: list[str] = []
    status = changes.get("status")
    if _changed(status):
        parts.append(
            f"status was changed from {_label(status['from'], MATTER_STATUS_LABELS)}"
            f" to {_label(status['to'], MATTER_STATUS_LABELS)}"
        )
    visibility = changes.get("visibility")
    if _changed(visibility):
        parts.append(
            f"visibility was changed from {_label(visibility['from'], MATTER_VISIBILITY_LABELS)}"
            f" to {_label(visibility['to'], MATTER_VISIBILITY_LABELS)}"
        )
    if _changed(changes.get("title")):
        parts.append("title was updated")
    client = changes.get("clientId")
    if isinstance(client, dict) and str(client.get("from")) != str(client.get("to")):
        parts.append("client was updated")

    return "; ".join(parts) if parts else None


def format_task_changes(payload: dict[str, Any]) -> str | None:
    """Describe ``payload.changes`` for a task update, or None if nothing readable changed."""
    changes = _changes(payload)
    if changes is None:
        return None

    parts: list[str] = []
    status = changes.get("status")
    if _changed(status):
        parts.append(
            f"status was changed from {_label(status['from'], TASK_STATUS_LABELS)}"
            f" to {_label(status['to'], TASK_STATUS_LABELS)}"
        )
    priority = changes.get("priority")
    if _changed(priority):
        parts.append(
            f"priority was changed from {_label(priority['from'], TASK_PRIORITY_LABELS)}"
            f" to {_label(priority['to'], TASK_PRIORITY_LABELS)}"
        )
    if _changed(changes.get("title")):
        parts.append("title was updated")
    assignee = changes.get("assigneeId")
    if isinstance(assignee, dict) and assignee.get("from") != assignee.get("to"):
        parts.append("assignee was updated")
    if "dueDate" in changes:
        parts.append("due date was updated")

    return "; ".join(parts) if parts else None


def _fit_title(title: str) -> str:
    if len(title) <= TITLE_MAX_LENGTH:
        return title
    return title[: TITLE_MAX_LENGTH - 1].rstrip() + "\u2026"


def build_notification_content(
    event_type: str,
    payload: dict[str, Any],
    ctx: NotificationContext,
) -> NotificationContent:
    """Build the title and body preview for an event.

    Unknown event types get a generic "Update" title. Titles embed user text
    (matter and task titles) and are shortened with an ellipsis to fit
    ``TITLE_MAX_LENGTH``.
    """
    content = _build_content(event_type, payload, ctx)
    return NotificationContent(_fit_title(content.title), content.body_preview)


def _build_content(
    event_type: str,
    payload: dict[str, Any],
    ctx: NotificationContext,
) -> NotificationContent:
    payload_title = payload.get("title")
    item = payload_title if isinstance(payload_title, str) and payload_title else "Item"
    matter_display = ctx.matter_title or item
    actor = ctx.actor_name or "Someone"
    in_matter = f' in "{ctx.matter_title}"' if ctx.matter_title else ""
    for_client = f" for {ctx.client_name}" if ctx.client_name else ""

    if event_type == EventTypes.MATTER_CREATED:
        return NotificationContent(
            f"New matter: {item}",
            f'{actor} created "{item}"{for_client}.',
        )
    if event_type == EventTypes.MATTER_UPDATED:
        change_text = format_matter_changes(payload)
        body = (
            f'{actor}: In matter "{matter_display}", {change_text}.'
            if change_text
            else f'{actor} updated "{matter_display}".'
        )
        return NotificationContent(f"Matter updated: {matter_display}", body)
    if event_type == EventTypes.TASK_CREATED:
        return NotificationContent(
            f"New task: {item}",
            f'{actor} created task "{item}"{in_matter}.',
        )
    if event_type == EventTypes.TASK_UPDATED:
        change_text = format_task_changes(payload)
        body = (
            f'{actor}: In task "{item}"{in_matter}, {change_text}.'
            if change_text
            else f'{actor} updated task "{item}"{in_matter}.'
        )
        return NotificationContent(f"Task updated: {item}", body)
    if event_type == EventTypes.TASK_ASSIGNED:
        return NotificationContent(
            f"Task assigned to you: {item}",
            f'{actor} assigned you to "{item}"{in_matter}.',
        )
    if event_type == EventTypes.TASK_COMPLETED:
        return NotificationContent(
            f"Task completed: {item}",
            f'{actor} completed "{item}"{in_matter}.',
        )
    if event_type == EventTypes.DOCUMENT_UPLOADED:
        return NotificationContent(
            f"New document: {item}",
            f'{actor} uploaded "{item}"{in_matter}.',
        )
    if event_type == EventTypes.INVOICE_CREATED:
        return NotificationContent(
            "New invoice",
            f"{actor} created an invoice{in_matter}{for_client}.",
        )
    if event_type == EventTypes.INVOICE_SENT:
        return NotificationContent(
            "Invoice sent",
            f"{actor} sent an invoice{in_matter}{for_client}.",
        )
    if event_type == EventTypes.PAYMENT_RECEIVED:
        return NotificationContent(
            "Payment received",
            f"{actor} recorded a payment{in_matter}{for_client}.",
        )
    if event_type == EventTypes.USER_JOINED:
        return NotificationContent("New team member", f"{actor} joined your firm.")
    if event_type == EventTypes.CLIENT_CREATED:
        return NotificationContent(
            f"New client: {item}",
            f'{actor} added client "{item}".',
        )
    if event_type == EventTypes.COMMENT_ADDED:
        return NotificationContent("New comment", f"{actor} added a comment{in_matter}.")
    if event_type == EventTypes.COMMENT_UPDATED:
        return NotificationContent("Comment updated", f"{actor} updated a comment{in_matter}.")
    if event_type == EventTypes.COMMENT_DELETED:
        return NotificationContent("Comment deleted", f"{actor} deleted a comment{in_matter}.")
    return NotificationContent("Update", f'{actor} made an update for "{item}".')
