"""SendGrid v3 mail-send provider over httpx."""

from typing import Any

import httpx
import structlog

from domain.entities.email import EmailMessage, EmailSendResult

logger = structlog.get_logger()

DEFAULT_FROM_NAME = "Practice Notifications"


def parse_sender(value: str) -> tuple[str, str]:
    """Split ``"Name <addr>"`` into (name, address); a bare address gets the default name."""
    if "<" in value:
        name, _, rest = value.partition("<")
        return name.strip() or DEFAULT_FROM_NAME, rest.replace(">", "").strip()
    return DEFAULT_FROM_NAME, value.strip()


class SendGridEmailProvider:
    """Sends mail through the SendGrid v3 API.

    Failures (non-2xx responses and transport errors) come back as a failed
    result so the outbox can schedule a retry.
    """

    name = "sendgrid"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        api_url: str = "https://api.sendgrid.com/v3/mail/send",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._from_name, self._from_address = parse_sender(from_email)
        self._api_url = api_url
        self._timeout = timeout
        self._transport = transport

    def build_body(self, message: EmailMessage) -> dict[str, Any]:
        """Request body for the mail-send endpoint."""
        content = [{"type": "text/html", "value": message.html}]
        if message.text:
            # SendGrid requires text/plain to precede text/html
            content.insert(0, {"type": "text/plain", "value": message.text})

        body: dict[str, Any] = {
            "personalizations": [{"to": [{"email": message.to}]}],
            "from": {"email": self._from_address, "name": self._from_name},
            "subject": message.subject,
            "content": content,
        }
        if message.idempotency_key:
            body["headers"] = {"X-Idempotency-Key": message.idempotency_key}
            body["custom_args"] = {"idempotency_key": message.idempotency_key}
        return body

    async def send(self, message: EmailMessage) -> EmailSendResult:
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout
            ) as client:
                response = await client.post(
                    self._api_url,
                    json=self.build_body(message),
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except httpx.HTTPError as e:
            logger.error("sendgrid_request_failed", error=str(e))
            return EmailSendResult(ok=False, error=str(e) or type(e).__name__)

        if response.is_success:
            return EmailSendResult(ok=True)

        logger.warning(
            "sendgrid_non_ok",
            status_code=response.status_code,
            body=response.text[:500],
        )
        return EmailSendResult(
            ok=False,
            error=f"SendGrid {response.status_code}: {response.text[:200]}",
        )
