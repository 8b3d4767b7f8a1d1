"""Outgoing e-mail message and provider result."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html: str
    text: str | None = None
    idempotency_key: str | None = None


@dataclass(frozen=True)
class EmailSendResult:
    """Provider outcome; ``error`` is set when ``ok`` is False."""

    ok: bool
    error: str | None = None
