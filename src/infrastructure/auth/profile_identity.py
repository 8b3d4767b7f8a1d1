"""Identity lookups backed by the synced ``profiles`` table."""

from collections.abc import Callable

from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork


class ProfileIdentityProvider:
    """IIdentityProvider over the directory's profile records.

    Database errors propagate so the outbox can retry the lookup.
    """

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def get_user(self, uid: str) -> Profile | None:
        async with self._uow_factory() as uow:
            return await uow.directory.get_profile(uid)
