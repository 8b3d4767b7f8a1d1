"""Main FastAPI application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.middleware.security import SecurityHeadersMiddleware
from api.routes.health import APP_VERSION
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_event_bus, get_notification_router, get_outbox_processor
from core.config import settings
from core.logging import setup_logging
from core.rate_limit import limiter, rate_limit_exceeded_handler
from domain.entities.domain_event import DOMAIN_EVENTS_STREAM
from infrastructure.scheduler import PeriodicTask

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire the notification pipeline for the lifetime of the app.

    The event listener is subscribed to the domain event stream, and the
    outbox processor is polled on a fixed interval when enabled.
    """
    bus = get_event_bus()
    bus.on_appended(DOMAIN_EVENTS_STREAM, get_notification_router().handle)

    outbox_task: PeriodicTask | None = None
    if settings.outbox_enabled:
        outbox_task = PeriodicTask(
            "outbox_processor",
            get_outbox_processor().run_once,
            settings.outbox_poll_interval_seconds,
        )
        outbox_task.start()
    else:
        logger.info("outbox_processor_disabled")

    try:
        yield
    finally:
        if outbox_task is not None:
            await outbox_task.stop()
        bus.clear()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Practice Notification Pipeline\n\n"
            "Turns domain events (tasks, matters, invoices, comments, ...) into "
            "in-app notifications and reliably delivered e-mail.\n\n"
            "### Features\n"
            "- **Feed**: Per-user in-app notifications with read tracking\n"
            "- **Preferences**: Per-category in-app and e-mail opt-outs\n"
            "- **Outbox**: Retried e-mail delivery with dead-letter requeue\n\n"
            "### Authentication\n"
            "All endpoints (except `/health`) require a valid JWT token "
            "in the Authorization header:\n"
            "```\nAuthorization: Bearer <your_token>\n```\n\n"
            "### Rate Limits\n"
            "- GET endpoints: 30 requests/minute\n"
            "- POST/PATCH/PUT: 10 requests/minute"
        ),
        version=APP_VERSION,
        debug=settings.debug,
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints",
            },
            {
                "name": "notifications",
                "description": "In-app notification feed operations",
            },
            {
                "name": "notification-preferences",
                "description": "Per-category channel preferences",
            },
            {
                "name": "outbox",
                "description": "E-mail delivery job administration (org admins)",
            },
        ],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # LIFO order: last added is outermost, so the request id exists before logging runs
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
