"""Effective per-category channel preferences (default on)."""

from domain.entities.notification import (
    DEFAULT_CHANNEL_PREFERENCE,
    ChannelPreference,
    NotificationCategory,
)
from domain.repositories.unit_of_work import IUnitOfWork


class PreferenceResolver:
    """Reads stored preferences, falling back to both channels enabled."""

    async def get_effective(
        self,
        uow: IUnitOfWork,
        org_id: str,
        uid: str,
        category: NotificationCategory,
    ) -> ChannelPreference:
        pref = await uow.notifications.get_preference(org_id, uid, category)
        if pref is None:
            return DEFAULT_CHANNEL_PREFERENCE
        return ChannelPreference(in_app=pref.in_app, email=pref.email)

    async def get_all(
        self, uow: IUnitOfWork, org_id: str, uid: str
    ) -> dict[NotificationCategory, ChannelPreference]:
        """Effective preferences for every category, for settings screens."""
        stored = {p.category: p for p in await uow.notifications.get_preferences(org_id, uid)}
        result: dict[NotificationCategory, ChannelPreference] = {}
        for category in NotificationCategory:
            pref = stored.get(category)
            result[category] = (
                ChannelPreference(in_app=pref.in_app, email=pref.email)
                if pref
                else DEFAULT_CHANNEL_PREFERENCE
            )
        return result
