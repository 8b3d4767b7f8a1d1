"""Read-only directory entities owned by other parts of the system.

Organizations, memberships, matters and clients are maintained by the
business-entity handlers; the notification pipeline only reads them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum, StrEnum


class OrgRole(IntEnum):
    """Organization role hierarchy. Higher value = more permissions.

    Use >= comparison for permission checks:
        member_role >= OrgRole.ADMIN  # True if Admin or Owner
    """

    VIEWER = 10
    MEMBER = 20
    ADMIN = 30
    OWNER = 40


def has_permission(user_role: OrgRole, required_role: OrgRole) -> bool:
    """Check if a user role meets the required permission level."""
    return user_role >= required_role


@dataclass
class OrgMember:
    """Domain entity for an organization membership."""

    org_id: str
    uid: str
    role: OrgRole = OrgRole.MEMBER
    joined_at: datetime = field(default_factory=datetime.utcnow)


class MatterVisibility(StrEnum):
    ORG_WIDE = "ORG_WIDE"
    PRIVATE = "PRIVATE"


@dataclass
class Matter:
    """A case/matter: the access scope for most events."""

    id: str
    org_id: str
    title: str
    created_by: str | None = None
    client_id: str | None = None
    visibility: MatterVisibility = MatterVisibility.ORG_WIDE
    deleted_at: datetime | None = None


@dataclass
class Client:
    """A firm's client."""

    id: str
    org_id: str
    name: str
    display_name: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.name
