"""Health check endpoints."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.v1.dependencies import get_email_provider
from core.config import settings
from domain.entities.outbox import OutboxStatus
from domain.repositories.email_provider import IEmailProvider
from infrastructure.database.models import OutboxJobModel
from infrastructure.database.session import get_async_session

router = APIRouter(tags=["health"])

APP_VERSION = "1.0.0"


class OutboxHealth(BaseModel):
    enabled: bool
    pending: int | None = None
    dead: int | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    database: str | None = None
    email_provider: str | None = None
    outbox: OutboxHealth | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """Liveness probe. Does not touch dependencies."""
    return HealthResponse(
        status="healthy",
        version=APP_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    db: AsyncSession = Depends(get_async_session),
    email_provider: IEmailProvider = Depends(get_email_provider),
) -> HealthResponse:
    """Database connectivity, active e-mail provider and outbox backlog.

    A growing ``dead`` count means jobs need manual triage.
    """
    outbox = OutboxHealth(enabled=settings.outbox_enabled)

    try:
        stmt = (
            select(OutboxJobModel.status, func.count())
            .where(OutboxJobModel.status.in_([OutboxStatus.PENDING.value, OutboxStatus.DEAD.value]))
            .group_by(OutboxJobModel.status)
        )
        counts = dict((await db.execute(stmt)).tuples().all())
        outbox.pending = counts.get(OutboxStatus.PENDING.value, 0)
        outbox.dead = counts.get(OutboxStatus.DEAD.value, 0)
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {type(e).__name__}"

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        version=APP_VERSION,
        timestamp=datetime.utcnow().isoformat(),
        environment=settings.app_env,
        database=db_status,
        email_provider=email_provider.name,
        outbox=outbox,
    )
