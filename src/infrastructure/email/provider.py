"""E-mail provider selection and the no-op provider."""

import structlog

from core.config import Settings
from domain.entities.email import EmailMessage, EmailSendResult
from domain.repositories.email_provider import IEmailProvider

logger = structlog.get_logger()


class NoOpEmailProvider:
    """Logs the message and reports success. Used when no credentials are configured."""

    name = "noop"

    async def send(self, message: EmailMessage) -> EmailSendResult:
        logger.info(
            "email_noop_send",
            to=message.to,
            subject=message.subject,
            idempotency_key=message.idempotency_key,
        )
        return EmailSendResult(ok=True)


def build_email_provider(config: Settings) -> IEmailProvider:
    """SendGrid when an API key resolved, otherwise the no-op provider."""
    if config.email_configured:
        from infrastructure.email.sendgrid_provider import SendGridEmailProvider

        return SendGridEmailProvider(
            api_key=config.sendgrid_api_key,
            from_email=config.sendgrid_from_email,
            api_url=config.sendgrid_api_url,
            timeout=config.email_timeout_seconds,
        )

    logger.info("email_provider_not_configured", provider=NoOpEmailProvider.name)
    return NoOpEmailProvider()
