"""In-process subscription to appended domain events."""

from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from domain.entities.domain_event import DomainEvent

logger = structlog.get_logger()

EventHandler = Callable[[DomainEvent], Awaitable[Any]]


class EventBus:
    """Stream-keyed handler registry.

    ``publish`` awaits each handler in subscription order. A failing handler
    is logged and skipped; it never reaches the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def on_appended(self, stream: str, handler: EventHandler) -> None:
        """Subscribe ``handler`` to events appended to ``stream``."""
        self._handlers[stream].append(handler)

    def handlers(self, stream: str) -> list[EventHandler]:
        return list(self._handlers.get(stream, []))

    def clear(self) -> None:
        self._handlers.clear()

    async def publish(self, stream: str, event: DomainEvent) -> None:
        for handler in self.handlers(stream):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "event_handler_failed",
                    stream=stream,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    event_id=event.event_id,
                    event_type=event.event_type,
                )
