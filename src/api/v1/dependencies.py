"""Dependency injection factories for API v1 and the background pipeline."""

from functools import lru_cache
from typing import Callable

from core.config import settings
from domain.repositories.email_provider import IEmailProvider
from domain.services.access_filter import AccessFilter
from domain.services.case_access import CaseAccessService
from domain.services.event_listener import NotificationRouter
from domain.services.event_service import DomainEventService
from domain.services.notification_service import NotificationService
from domain.services.notification_writer import NotificationWriter
from domain.services.outbox_processor import OutboxProcessor
from domain.services.outbox_service import OutboxService
from domain.services.preference_resolver import PreferenceResolver
from domain.services.recipient_resolver import RecipientResolver
from domain.services.suppression import SuppressionChecker
from infrastructure.auth.profile_identity import ProfileIdentityProvider
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork
from infrastructure.email.provider import build_email_provider
from infrastructure.events.event_bus import EventBus


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_event_bus() -> EventBus:
    """Process-wide event bus."""
    return EventBus()


@lru_cache
def get_notification_service() -> NotificationService:
    """Get Notification service instance."""
    return NotificationService(get_uow_factory(), preferences=PreferenceResolver())


@lru_cache
def get_outbox_service() -> OutboxService:
    """Get Outbox administration service instance."""
    return OutboxService(get_uow_factory())


@lru_cache
def get_case_access_service() -> CaseAccessService:
    """Get case access service instance."""
    return CaseAccessService(get_uow_factory())


@lru_cache
def get_notification_router() -> NotificationRouter:
    """Get the domain event listener that creates notifications."""
    return NotificationRouter(
        get_uow_factory(),
        resolver=RecipientResolver(),
        access_filter=AccessFilter(get_case_access_service()),
        writer=NotificationWriter(
            PreferenceResolver(),
            max_attempts=settings.outbox_max_attempts,
        ),
    )


@lru_cache
def get_event_service() -> DomainEventService:
    """Get domain event service instance."""
    return DomainEventService(get_uow_factory(), publisher=get_event_bus())


@lru_cache
def get_email_provider() -> IEmailProvider:
    """E-mail provider chosen from the resolved settings."""
    return build_email_provider(settings)


@lru_cache
def get_suppression_checker() -> SuppressionChecker:
    """Get suppression list service instance."""
    return SuppressionChecker(get_uow_factory())


@lru_cache
def get_outbox_processor() -> OutboxProcessor:
    """Get the outbox processor for this process."""
    return OutboxProcessor(
        get_uow_factory(),
        email_provider=get_email_provider(),
        identity_provider=ProfileIdentityProvider(get_uow_factory()),
        suppression=get_suppression_checker(),
        batch_size=settings.outbox_batch_size,
        backoff_base_seconds=settings.outbox_backoff_base_seconds,
        backoff_max_seconds=settings.outbox_backoff_max_seconds,
        lock_timeout_seconds=settings.outbox_lock_timeout_seconds,
        app_base_url=settings.app_base_url,
    )
