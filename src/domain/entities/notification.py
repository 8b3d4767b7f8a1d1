"""Notification domain entities and enums."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class NotificationChannel(StrEnum):
    """Independent delivery surfaces."""

    IN_APP = "in_app"
    EMAIL = "email"


class NotificationStatus(StrEnum):
    """Lifecycle of a notification record."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SUPPRESSED = "suppressed"
    READ = "read"


class NotificationCategory(StrEnum):
    """Preference bucket derived from the event type prefix."""

    MATTER = "matter"
    TASK = "task"
    DOCUMENT = "document"
    INVOICE = "invoice"
    PAYMENT = "payment"
    COMMENT = "comment"
    USER = "user"
    CLIENT = "client"


_CATEGORY_PREFIXES: tuple[tuple[str, NotificationCategory], ...] = (
    ("matter.", NotificationCategory.MATTER),
    ("task.", NotificationCategory.TASK),
    ("document.", NotificationCategory.DOCUMENT),
    ("invoice.", NotificationCategory.INVOICE),
    ("payment.", NotificationCategory.INVOICE),
    ("comment.", NotificationCategory.COMMENT),
    ("user.", NotificationCategory.USER),
    ("client.", NotificationCategory.CLIENT),
)


def event_type_to_category(event_type: str) -> NotificationCategory:
    """Map an event type to its preference category (unknown -> matter)."""
    for prefix, category in _CATEGORY_PREFIXES:
        if event_type.startswith(prefix):
            return category
    return NotificationCategory.MATTER


def notification_record_id(
    channel: NotificationChannel, org_id: str, event_id: str, recipient_uid: str
) -> str:
    """Deterministic id: one record per (event, recipient, channel)."""
    return f"notif_{channel.value}:{org_id}:{event_id}:{recipient_uid}"


@dataclass
class NotificationRecord:
    """Domain entity for a per-recipient, per-channel notification."""

    org_id: str
    recipient_uid: str
    event_id: str
    channel: NotificationChannel
    category: NotificationCategory
    title: str
    body_preview: str
    deep_link: str
    id: str = ""
    status: NotificationStatus = NotificationStatus.PENDING
    template_id: str | None = None
    template_version: int | None = None
    read_at: datetime | None = None
    sent_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = notification_record_id(
                self.channel, self.org_id, self.event_id, self.recipient_uid
            )


@dataclass(frozen=True, slots=True)
class ChannelPreference:
    """Effective channel toggles for one category."""

    in_app: bool = True
    email: bool = True


DEFAULT_CHANNEL_PREFERENCE = ChannelPreference(in_app=True, email=True)


@dataclass
class NotificationPreference:
    """Stored per-(org, user, category) channel toggles."""

    org_id: str
    uid: str
    category: NotificationCategory
    in_app: bool = True
    email: bool = True
    updated_at: datetime = field(default_factory=datetime.utcnow)


class SuppressionReason(StrEnum):
    """Why an address is on the no-send list."""

    BOUNCE = "bounce"
    COMPLAINT = "complaint"
    MANUAL = "manual"


def normalize_email(email: str) -> str:
    """Suppression key form of an address."""
    return email.strip().lower()


@dataclass
class SuppressionRecord:
    """An address that must never receive mail for an organization."""

    org_id: str
    email: str
    reason: SuppressionReason = SuppressionReason.MANUAL
    provider: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        self.email = normalize_email(self.email)
