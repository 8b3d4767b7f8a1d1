"""Outbox repository protocol."""

from datetime import datetime
from typing import Protocol

from domain.entities.outbox import OutboxJob, OutboxStatus


class IOutboxRepository(Protocol):
    """Repository interface for outbox jobs."""

    async def get(self, job_id: str) -> OutboxJob | None:
        """Get a job by ID."""
        ...

    async def get_existing_ids(self, ids: list[str]) -> set[str]:
        """Return the subset of ``ids`` that already exist."""
        ...

    async def create_batch(self, jobs: list[OutboxJob]) -> None:
        """Add jobs to the current transaction."""
        ...

    async def list_due(self, now: datetime, limit: int) -> list[OutboxJob]:
        """Pending jobs whose ``next_attempt_at`` has passed, oldest first."""
        ...

    async def claim(self, job_id: str, owner: str, now: datetime) -> bool:
        """Atomically move a due pending job to processing. False if lost."""
        ...

    async def save_attempt(self, job: OutboxJob, expected_owner: str) -> bool:
        """Persist the outcome of an attempt if ``expected_owner`` still holds the lock."""
        ...

    async def reclaim_stale(self, locked_before: datetime, now: datetime) -> int:
        """Return processing jobs locked before the cutoff to pending."""
        ...

    async def list_for_org(
        self, org_id: str, status: OutboxStatus | None = None, limit: int = 50
    ) -> list[OutboxJob]:
        """List an org's jobs, most recently updated first."""
        ...

    async def requeue(self, job_id: str, now: datetime) -> bool:
        """Reset a dead job to pending with a fresh retry budget."""
        ...
