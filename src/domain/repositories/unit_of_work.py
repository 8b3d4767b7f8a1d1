"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.directory_repository import IDirectoryRepository
from domain.repositories.event_repository import IDomainEventRepository
from domain.repositories.notification_repository import INotificationRepository
from domain.repositories.outbox_repository import IOutboxRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    notifications: INotificationRepository
    outbox: IOutboxRepository
    events: IDomainEventRepository
    directory: IDirectoryRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
