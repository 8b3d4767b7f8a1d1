"""Outbox administration routes (org admins only)."""

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_outbox_service
from api.v1.schemas.outbox import OutboxErrorResponse, OutboxJobListResponse, OutboxJobResponse
from core.rate_limit import limiter
from domain.entities.outbox import OutboxJob, OutboxStatus
from domain.services.outbox_service import OutboxService

router = APIRouter(prefix="/orgs/{org_id}/outbox", tags=["outbox"])


def _to_response(job: OutboxJob) -> OutboxJobResponse:
    return OutboxJobResponse(
        id=job.id,
        event_id=job.event_id,
        recipient_uid=job.recipient_uid,
        job_type=job.job_type,
        status=job.status.value,
        attempts=job.attempts,
        max_attempts=job.max_attempts,
        next_attempt_at=job.next_attempt_at,
        last_error=(
            OutboxErrorResponse(
                code=job.last_error.code,
                message=job.last_error.message,
                at=job.last_error.at,
            )
            if job.last_error
            else None
        ),
        sent_at=job.sent_at,
        created_at=job.created_at,
        updated_at=job.updated_at,
    )


@router.get(
    "",
    response_model=OutboxJobListResponse,
    summary="List outbox jobs",
    responses={
        200: {"description": "Jobs, most recently updated first"},
        403: {"description": "Admin role required"},
    },
)
@limiter.limit("30/minute")  # type: ignore[untyped-decorator]
async def list_outbox_jobs(
    request: Request,
    org_id: str,
    user: CurrentUser,
    status: OutboxStatus | None = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, le=100, description="Page size"),
    service: OutboxService = Depends(get_outbox_service),
) -> OutboxJobListResponse:
    """List the organization's dispatch jobs, e.g. ``?status=dead`` for triage."""
    jobs = await service.list_jobs(org_id, user.id, status=status, limit=limit)
    return OutboxJobListResponse(data=[_to_response(j) for j in jobs])


@router.post(
    "/{job_id}/requeue",
    response_model=OutboxJobResponse,
    summary="Requeue a dead job",
    responses={
        200: {"description": "Job is pending again"},
        404: {"description": "Job not found"},
        409: {"description": "Job is not dead"},
    },
)
@limiter.limit("10/minute")  # type: ignore[untyped-decorator]
async def requeue_outbox_job(
    request: Request,
    org_id: str,
    job_id: str,
    user: CurrentUser,
    service: OutboxService = Depends(get_outbox_service),
) -> OutboxJobResponse:
    """Reset a dead job so the processor picks it up on its next tick."""
    job = await service.requeue(org_id, user.id, job_id)
    return _to_response(job)
