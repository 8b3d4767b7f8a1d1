"""SQLAlchemy ORM models."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# --- Directory (owned by business-entity handlers, read here) ---


class OrganizationModel(Base):
    """Organization (tenant) model."""

    __tablename__ = "organizations"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class ProfileModel(Base):
    """User profile model (synced from the identity provider)."""

    __tablename__ = "profiles"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255))
    display_name: Mapped[str | None] = mapped_column(String(100))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )


class OrgMemberModel(Base):
    """Organization membership model (composite PK on org_id + uid)."""

    __tablename__ = "org_members"

    org_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        primary_key=True,
    )
    uid: Mapped[str] = mapped_column(String(128), primary_key=True, index=True)
    role: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint("role IN ('owner', 'admin', 'member', 'viewer')"),
        nullable=False,
        default="member",
    )
    joined_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class ClientModel(Base):
    """Client model."""

    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    org_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(200))


class MatterModel(Base):
    """Matter (case) model."""

    __tablename__ = "matters"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    org_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    client_id: Mapped[str | None] = mapped_column(String(128))
    visibility: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint("visibility IN ('ORG_WIDE', 'PRIVATE')"),
        nullable=False,
        default="ORG_WIDE",
    )
    created_by: Mapped[str | None] = mapped_column(String(128))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime)


class MatterParticipantModel(Base):
    """Explicit matter participant (composite PK on matter_id + uid)."""

    __tablename__ = "matter_participants"

    matter_id: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("matters.id", ondelete="CASCADE"),
        primary_key=True,
    )
    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    added_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


# --- Notification pipeline ---


class DomainEventModel(Base):
    """Append-only domain event log."""

    __tablename__ = "domain_events"

    event_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    org_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(128), nullable=False)
    matter_id: Mapped[str | None] = mapped_column(String(128))
    actor_type: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    actor_id: Mapped[str] = mapped_column(String(128), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class NotificationRecordModel(Base):
    """Per-recipient, per-channel notification record."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("idx_notifications_dispatch", "event_id", "recipient_uid", "channel"),
        Index(
            "idx_notifications_feed",
            "recipient_uid",
            "org_id",
            "channel",
            "created_at",
        ),
    )

    id: Mapped[str] = mapped_column(String(512), primary_key=True)
    org_id: Mapped[str] = mapped_column(String(128), nullable=False)
    recipient_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    event_id: Mapped[str] = mapped_column(String(128), nullable=False)
    channel: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint("channel IN ('in_app', 'email')"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body_preview: Mapped[str] = mapped_column(Text, nullable=False, default="")
    deep_link: Mapped[str] = mapped_column(String(1000), nullable=False, default="/home")
    template_id: Mapped[str | None] = mapped_column(String(64))
    template_version: Mapped[int | None] = mapped_column(Integer)
    read_at: Mapped[datetime | None] = mapped_column(DateTime)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime)
    error_message: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class NotificationPreferenceModel(Base):
    """Per-(org, user, category) channel toggles."""

    __tablename__ = "notification_preferences"

    org_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    category: Mapped[str] = mapped_column(String(20), primary_key=True)
    in_app: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    email: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class SuppressionModel(Base):
    """No-send list entry keyed by (org_id, normalized email)."""

    __tablename__ = "suppression_list"

    org_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    reason: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint("reason IN ('bounce', 'complaint', 'manual')"),
        nullable=False,
        default="manual",
    )
    provider: Mapped[str | None] = mapped_column(String(50))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class OutboxJobModel(Base):
    """Durable dispatch job (id is the idempotency key)."""

    __tablename__ = "outbox_jobs"
    __table_args__ = (
        Index("idx_outbox_due", "status", "next_attempt_at"),
        Index("idx_outbox_org_status", "org_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(512), primary_key=True)
    org_id: Mapped[str] = mapped_column(String(128), nullable=False)
    event_id: Mapped[str] = mapped_column(String(128), nullable=False)
    recipient_uid: Mapped[str] = mapped_column(String(128), nullable=False)
    job_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        CheckConstraint("status IN ('pending', 'processing', 'sent', 'failed', 'dead')"),
        nullable=False,
        default="pending",
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    next_attempt_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime)
    lock_owner: Mapped[str | None] = mapped_column(String(128))
    last_error: Mapped[dict[str, Any] | None] = mapped_column(JSONB)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
