"""create_notification_pipeline_tables

Revision ID: 4b2d9e61c0a7
Revises:
Create Date: 2026-03-02 10:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "4b2d9e61c0a7"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the directory read tables and the notification pipeline tables."""

    # --- Directory (written by the business-entity side) ---
    op.create_table(
        "organizations",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "profiles",
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_table(
        "org_members",
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="member"),
        sa.Column("joined_at", sa.DateTime(), server_default=sa.text("NOW()")),
        sa.CheckConstraint("role IN ('owner', 'admin', 'member', 'viewer')"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("org_id", "uid"),
    )
    op.create_index("ix_org_members_uid", "org_members", ["uid"])

    op.create_table(
        "clients",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_clients_org_id", "clients", ["org_id"])

    op.create_table(
        "matters",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("client_id", sa.String(length=128), nullable=True),
        sa.Column(
            "visibility", sa.String(length=20), nullable=False, server_default="ORG_WIDE"
        ),
        sa.Column("created_by", sa.String(length=128), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("visibility IN ('ORG_WIDE', 'PRIVATE')"),
        sa.ForeignKeyConstraint(["org_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_matters_org_id", "matters", ["org_id"])

    op.create_table(
        "matter_participants",
        sa.Column("matter_id", sa.String(length=128), nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("added_at", sa.DateTime(), server_default=sa.text("NOW()")),
        sa.ForeignKeyConstraint(["matter_id"], ["matters.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("matter_id", "uid"),
    )

    # --- Event log ---
    op.create_table(
        "domain_events",
        sa.Column("event_id", sa.String(length=128), nullable=False),
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=False),
        sa.Column("matter_id", sa.String(length=128), nullable=True),
        sa.Column("actor_type", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("actor_id", sa.String(length=128), nullable=False),
        sa.Column(
            "payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("event_id"),
    )
    op.create_index("ix_domain_events_org_id", "domain_events", ["org_id"])

    # --- Notification records (one per recipient and channel) ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=512), nullable=False),
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("recipient_uid", sa.String(length=128), nullable=False),
        sa.Column("event_id", sa.String(length=128), nullable=False),
        sa.Column("channel", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("body_preview", sa.Text(), nullable=False, server_default=""),
        sa.Column("deep_link", sa.String(length=1000), nullable=False, server_default="/home"),
        sa.Column("template_id", sa.String(length=64), nullable=True),
        sa.Column("template_version", sa.Integer(), nullable=True),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.CheckConstraint("channel IN ('in_app', 'email')"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_notifications_dispatch", "notifications", ["event_id", "recipient_uid", "channel"]
    )
    op.create_index(
        "idx_notifications_feed",
        "notifications",
        ["recipient_uid", "org_id", "channel", "created_at"],
    )
    # Unread badge counts only look at unread in-app rows
    op.create_index(
        "idx_notifications_unread",
        "notifications",
        ["recipient_uid", "org_id"],
        postgresql_where=sa.text("channel = 'in_app' AND read_at IS NULL"),
    )

    op.create_table(
        "notification_preferences",
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("uid", sa.String(length=128), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("in_app", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("email", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.text("NOW()")),
        sa.PrimaryKeyConstraint("org_id", "uid", "category"),
    )

    op.create_table(
        "suppression_list",
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.String(length=20), nullable=False, server_default="manual"),
        sa.Column("provider", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("NOW()")),
        sa.CheckConstraint("reason IN ('bounce', 'complaint', 'manual')"),
        sa.PrimaryKeyConstraint("org_id", "email"),
    )

    # --- Outbox ---
    op.create_table(
        "outbox_jobs",
        sa.Column("id", sa.String(length=512), nullable=False),
        sa.Column("org_id", sa.String(length=128), nullable=False),
        sa.Column("event_id", sa.String(length=128), nullable=False),
        sa.Column("recipient_uid", sa.String(length=128), nullable=False),
        sa.Column("job_type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("next_attempt_at", sa.DateTime(), nullable=False),
        sa.Column("locked_at", sa.DateTime(), nullable=True),
        sa.Column("lock_owner", sa.String(length=128), nullable=True),
        sa.Column("last_error", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("sent_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("NOW()")),
        sa.CheckConstraint("status IN ('pending', 'processing', 'sent', 'failed', 'dead')"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_outbox_due", "outbox_jobs", ["status", "next_attempt_at"])
    op.create_index("idx_outbox_org_status", "outbox_jobs", ["org_id", "status"])


def downgrade() -> None:
    """Drop all tables (in dependency order)."""
    op.drop_index("idx_outbox_org_status", table_name="outbox_jobs")
    op.drop_index("idx_outbox_due", table_name="outbox_jobs")
    op.drop_table("outbox_jobs")

    op.drop_table("suppression_list")
    op.drop_table("notification_preferences")

    op.drop_index("idx_notifications_unread", table_name="notifications")
    op.drop_index("idx_notifications_feed", table_name="notifications")
    op.drop_index("idx_notifications_dispatch", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_domain_events_org_id", table_name="domain_events")
    op.drop_table("domain_events")

    op.drop_table("matter_participants")
    op.drop_index("ix_matters_org_id", table_name="matters")
    op.drop_table("matters")
    op.drop_index("ix_clients_org_id", table_name="clients")
    op.drop_table("clients")
    op.drop_index("ix_org_members_uid", table_name="org_members")
    op.drop_table("org_members")
    op.drop_table("profiles")
    op.drop_table("organizations")
