"""Fixtures for pipeline integration tests against a real (SQLite) database."""

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest

from domain.entities.domain_event import DOMAIN_EVENTS_STREAM
from domain.entities.email import EmailMessage, EmailSendResult
from domain.services.access_filter import AccessFilter
from domain.services.case_access import CaseAccessService
from domain.services.event_listener import NotificationRouter
from domain.services.event_service import DomainEventService
from domain.services.notification_writer import NotificationWriter
from domain.services.outbox_processor import OutboxProcessor
from domain.services.preference_resolver import PreferenceResolver
from domain.services.recipient_resolver import RecipientResolver
from domain.services.suppression import SuppressionChecker
from infrastructure.auth.profile_identity import ProfileIdentityProvider
from infrastructure.events.event_bus import EventBus

T0 = datetime(2026, 3, 2, 9, 0, 0)


class FakeClock:
    """Controllable ``datetime.utcnow`` replacement."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingEmailProvider:
    """Collects sent messages; ``fail`` makes every send return a provider error."""

    name = "recording"

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.fail = False

    async def send(self, message: EmailMessage) -> EmailSendResult:
        self.sent.append(message)
        if self.fail:
            return EmailSendResult(ok=False, error="SendGrid 503: unavailable")
        return EmailSendResult(ok=True)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def email_provider() -> RecordingEmailProvider:
    return RecordingEmailProvider()


@pytest.fixture
def router(uow_factory, clock) -> NotificationRouter:
    return NotificationRouter(
        uow_factory,
        resolver=RecipientResolver(),
        access_filter=AccessFilter(CaseAccessService(uow_factory)),
        writer=NotificationWriter(PreferenceResolver(), max_attempts=5),
        clock=clock,
    )


@pytest.fixture
def event_bus(router) -> EventBus:
    bus = EventBus()
    bus.on_appended(DOMAIN_EVENTS_STREAM, router.handle)
    return bus


@pytest.fixture
def event_service(uow_factory, event_bus) -> DomainEventService:
    return DomainEventService(uow_factory, publisher=event_bus)


@pytest.fixture
def make_processor(uow_factory, email_provider, clock) -> Callable[..., OutboxProcessor]:
    """Build processors sharing the test database, provider and clock."""

    def build(instance_id: str = "worker-a", **kwargs) -> OutboxProcessor:
        return OutboxProcessor(
            uow_factory,
            email_provider=kwargs.pop("provider", email_provider),
            identity_provider=ProfileIdentityProvider(uow_factory),
            suppression=SuppressionChecker(uow_factory),
            app_base_url="https://app.example.com",
            instance_id=instance_id,
            clock=clock,
            **kwargs,
        )

    return build
