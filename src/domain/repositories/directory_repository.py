"""Directory repository protocol (organizations, members, matters, profiles)."""

from typing import Protocol

from domain.entities.directory import Client, Matter, OrgMember
from domain.entities.profile import Profile


class IDirectoryRepository(Protocol):
    """Read-only lookups into data owned by the business-entity handlers."""

    async def get_member(self, org_id: str, uid: str) -> OrgMember | None:
        """Get an org membership."""
        ...

    async def list_admin_uids(self, org_id: str) -> list[str]:
        """UIDs of the org's admins and owners."""
        ...

    async def get_matter(self, org_id: str, matter_id: str) -> Matter | None:
        """Get a matter by ID within an org."""
        ...

    async def list_participant_uids(self, org_id: str, matter_id: str) -> list[str]:
        """Explicit participants of a matter."""
        ...

    async def is_participant(self, org_id: str, matter_id: str, uid: str) -> bool:
        """True when ``uid`` is an explicit participant of the matter."""
        ...

    async def get_client(self, org_id: str, client_id: str) -> Client | None:
        """Get a client by ID within an org."""
        ...

    async def get_profile(self, uid: str) -> Profile | None:
        """Get a user's identity profile."""
        ...
