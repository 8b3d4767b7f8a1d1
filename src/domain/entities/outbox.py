"""Outbox job entity, retry policy and idempotency key."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any

DEFAULT_MAX_ATTEMPTS = 5


class OutboxStatus(StrEnum):
    """Outbox job states. ``sent`` and ``dead`` are terminal."""

    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"
    DEAD = "dead"


class JobTypes:
    """Outbox job type constants."""

    NOTIFICATION_DISPATCH = "notification_dispatch"


def outbox_idempotency_key(org_id: str, event_id: str, recipient_uid: str) -> str:
    """Job id for a per-recipient e-mail dispatch."""
    return f"notif_email:{org_id}:{event_id}:{recipient_uid}"


def backoff_delay(attempts: int, base_seconds: int = 60, max_seconds: int = 3600) -> timedelta:
    """Exponential delay after ``attempts`` failures, capped at ``max_seconds``."""
    exponent = max(attempts, 1) - 1
    # Clamp the exponent before shifting so huge attempt counts stay cheap
    seconds = base_seconds * (1 << min(exponent, 32))
    return timedelta(seconds=min(seconds, max_seconds))


@dataclass(frozen=True, slots=True)
class OutboxError:
    """Last failure recorded on a job."""

    message: str
    at: datetime
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "at": self.at.isoformat()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OutboxError":
        return cls(
            code=data.get("code"),
            message=data.get("message", ""),
            at=datetime.fromisoformat(data["at"]),
        )


@dataclass
class OutboxJob:
    """Durable dispatch job drained by the outbox processor."""

    org_id: str
    event_id: str
    recipient_uid: str
    id: str = ""
    job_type: str = JobTypes.NOTIFICATION_DISPATCH
    status: OutboxStatus = OutboxStatus.PENDING
    attempts: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    next_attempt_at: datetime = field(default_factory=datetime.utcnow)
    locked_at: datetime | None = None
    lock_owner: str | None = None
    last_error: OutboxError | None = None
    sent_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = outbox_idempotency_key(self.org_id, self.event_id, self.recipient_uid)

    @property
    def is_terminal(self) -> bool:
        return self.status in (OutboxStatus.SENT, OutboxStatus.DEAD)
