"""Pydantic schemas for the outbox administration API."""

from datetime import datetime

from pydantic import BaseModel


class OutboxErrorResponse(BaseModel):
    code: str | None = None
    message: str
    at: datetime


class OutboxJobResponse(BaseModel):
    """Outbox job as shown to org admins."""

    id: str
    event_id: str
    recipient_uid: str
    job_type: str
    status: str
    attempts: int
    max_attempts: int
    next_attempt_at: datetime
    last_error: OutboxErrorResponse | None = None
    sent_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class OutboxJobListResponse(BaseModel):
    data: list[OutboxJobResponse]
