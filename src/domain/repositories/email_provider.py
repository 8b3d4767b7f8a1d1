"""Transactional e-mail provider protocol."""

from typing import Protocol

from domain.entities.email import EmailMessage, EmailSendResult


class IEmailProvider(Protocol):
    """Sends one message. Implementations report failures in the result, never raise."""

    name: str

    async def send(self, message: EmailMessage) -> EmailSendResult:
        ...
