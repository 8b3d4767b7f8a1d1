"""SQLAlchemy implementation of Outbox repository."""

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.outbox import OutboxError, OutboxJob, OutboxStatus
from infrastructure.database.models import OutboxJobModel


class SQLAlchemyOutboxRepository:
    """SQLAlchemy implementation of IOutboxRepository.

    Claiming is a single conditional UPDATE so only one concurrent caller can
    move a job from ``pending`` to ``processing``; the row count tells the
    caller whether it won.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, job_id: str) -> OutboxJob | None:
        """Get a job by ID, reloading any copy already in the session."""
        stmt = (
            select(OutboxJobModel)
            .where(OutboxJobModel.id == job_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_existing_ids(self, ids: list[str]) -> set[str]:
        """Return the subset of ``ids`` that already exist."""
        if not ids:
            return set()
        stmt = select(OutboxJobModel.id).where(OutboxJobModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def create_batch(self, jobs: list[OutboxJob]) -> None:
        """Add jobs to the current transaction."""
        self._session.add_all([self._to_model(j) for j in jobs])
        await self._session.flush()

    async def list_due(self, now: datetime, limit: int) -> list[OutboxJob]:
        """Pending jobs whose ``next_attempt_at`` has passed, oldest first."""
        stmt = (
            select(OutboxJobModel)
            .where(
                OutboxJobModel.status == OutboxStatus.PENDING.value,
                OutboxJobModel.next_attempt_at <= now,
            )
            .order_by(OutboxJobModel.next_attempt_at, OutboxJobModel.id)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    async def claim(self, job_id: str, owner: str, now: datetime) -> bool:
        """Atomically move a due pending job to processing. False if lost."""
        stmt = (
            update(OutboxJobModel)
            .where(
                OutboxJobModel.id == job_id,
                OutboxJobModel.status == OutboxStatus.PENDING.value,
                OutboxJobModel.next_attempt_at <= now,
            )
            .values(
                status=OutboxStatus.PROCESSING.value,
                locked_at=now,
                lock_owner=owner,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]

    async def save_attempt(self, job: OutboxJob, expected_owner: str) -> bool:
        """Persist the outcome of an attempt if ``expected_owner`` still holds the lock."""
        stmt = (
            update(OutboxJobModel)
            .where(
                OutboxJobModel.id == job.id,
                OutboxJobModel.status == OutboxStatus.PROCESSING.value,
                OutboxJobModel.lock_owner == expected_owner,
            )
            .values(
                status=job.status.value,
                attempts=job.attempts,
                next_attempt_at=job.next_attempt_at,
                locked_at=job.locked_at,
                lock_owner=job.lock_owner,
                last_error=job.last_error.to_dict() if job.last_error else None,
                sent_at=job.sent_at,
                updated_at=job.updated_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]

    async def reclaim_stale(self, locked_before: datetime, now: datetime) -> int:
        """Return processing jobs locked before the cutoff to pending."""
        stmt = (
            update(OutboxJobModel)
            .where(
                OutboxJobModel.status == OutboxStatus.PROCESSING.value,
                OutboxJobModel.locked_at < locked_before,
            )
            .values(
                status=OutboxStatus.PENDING.value,
                locked_at=None,
                lock_owner=None,
                next_attempt_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount  # type: ignore[attr-defined,no-any-return]

    async def list_for_org(
        self, org_id: str, status: OutboxStatus | None = None, limit: int = 50
    ) -> list[OutboxJob]:
        """List an org's jobs, most recently updated first."""
        stmt = select(OutboxJobModel).where(OutboxJobModel.org_id == org_id)

        if status is not None:
            stmt = stmt.where(OutboxJobModel.status == status.value)

        stmt = stmt.order_by(OutboxJobModel.updated_at.desc(), OutboxJobModel.id).limit(limit)
        result = await self._session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars()]

    async def requeue(self, job_id: str, now: datetime) -> bool:
        """Reset a dead job to pending with a fresh retry budget."""
        stmt = (
            update(OutboxJobModel)
            .where(
                OutboxJobModel.id == job_id,
                OutboxJobModel.status == OutboxStatus.DEAD.value,
            )
            .values(
                status=OutboxStatus.PENDING.value,
                attempts=0,
                next_attempt_at=now,
                locked_at=None,
                lock_owner=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1  # type: ignore[attr-defined,no-any-return]

    # --- Conversion methods ---

    def _to_entity(self, model: OutboxJobModel) -> OutboxJob:
        """Convert OutboxJobModel to domain entity."""
        return OutboxJob(
            id=model.id,
            org_id=model.org_id,
            event_id=model.event_id,
            recipient_uid=model.recipient_uid,
            job_type=model.job_type,
            status=OutboxStatus(model.status),
            attempts=model.attempts,
            max_attempts=model.max_attempts,
            next_attempt_at=model.next_attempt_at,
            locked_at=model.locked_at,
            lock_owner=model.lock_owner,
            last_error=OutboxError.from_dict(model.last_error) if model.last_error else None,
            sent_at=model.sent_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: OutboxJob) -> OutboxJobModel:
        """Convert OutboxJob domain entity to ORM model."""
        return OutboxJobModel(
            id=entity.id,
            org_id=entity.org_id,
            event_id=entity.event_id,
            recipient_uid=entity.recipient_uid,
            job_type=entity.job_type,
            status=entity.status.value,
            attempts=entity.attempts,
            max_attempts=entity.max_attempts,
            next_attempt_at=entity.next_attempt_at,
            locked_at=entity.locked_at,
            lock_owner=entity.lock_owner,
            last_error=entity.last_error.to_dict() if entity.last_error else None,
            sent_at=entity.sent_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
