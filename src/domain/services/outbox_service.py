"""Administrative access to outbox jobs (dead-letter triage)."""

from collections.abc import Callable
from datetime import datetime

import structlog

from core.exceptions import (
    InsufficientPermissionsError,
    NotAMemberError,
    OutboxJobNotFoundError,
    OutboxJobNotRequeueableError,
)
from domain.entities.directory import OrgRole, has_permission
from domain.entities.outbox import OutboxJob, OutboxStatus
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class OutboxService:
    """Lets org admins inspect jobs and put dead jobs back in the queue."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    async def _require_admin(self, uow: IUnitOfWork, org_id: str, uid: str) -> None:
        member = await uow.directory.get_member(org_id, uid)
        if not member:
            raise NotAMemberError(org_id)
        if not has_permission(member.role, OrgRole.ADMIN):
            raise InsufficientPermissionsError("admin")

    async def list_jobs(
        self,
        org_id: str,
        uid: str,
        status: OutboxStatus | None = None,
        limit: int = 50,
    ) -> list[OutboxJob]:
        async with self._uow_factory() as uow:
            await self._require_admin(uow, org_id, uid)
            return await uow.outbox.list_for_org(org_id, status=status, limit=limit)

    async def requeue(self, org_id: str, uid: str, job_id: str) -> OutboxJob:
        """Reset a dead job to pending with a fresh retry budget.

        ``last_error`` is kept so the previous failure stays visible.
        """
        async with self._uow_factory() as uow:
            await self._require_admin(uow, org_id, uid)

            job = await uow.outbox.get(job_id)
            if not job or job.org_id != org_id:
                raise OutboxJobNotFoundError(job_id)
            if job.status != OutboxStatus.DEAD:
                raise OutboxJobNotRequeueableError(job_id, job.status.value)

            if not await uow.outbox.requeue(job_id, self._clock()):
                # Status changed between the read and the conditional update
                raise OutboxJobNotRequeueableError(job_id, "changed")
            await uow.commit()

            requeued = await uow.outbox.get(job_id)

        logger.info("outbox_job_requeued", org_id=org_id, job_id=job_id, requeued_by=uid)
        return requeued or job
