"""Identity lookup protocol."""

from typing import Protocol

from domain.entities.profile import Profile


class IIdentityProvider(Protocol):
    """Resolves a user id to contact details."""

    async def get_user(self, uid: str) -> Profile | None:
        """Return the user's profile, or None when the user is unknown.

        Raises on lookup failure (the caller treats that as transient).
        """
        ...
