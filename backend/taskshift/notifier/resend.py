"""Notifier backed by the Resend HTTP API."""

import httpx

from taskshift.core.errors import NotificationError
from taskshift.core.logging import get_logger
from taskshift.notifier.base import EmailMessage, Notifier

logger = get_logger("notifier.resend")


class ResendNotifier(Notifier):
    """POSTs each message to the Resend ``/emails`` endpoint.

    No retries are performed.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str,
        timeout_seconds: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("ResendNotifier requires an API key")
        self.api_key = api_key
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def send(self, message: EmailMessage) -> str | None:
        payload = {
            "from": message.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise NotificationError(f"Email provider timed out after {self.timeout_seconds}s") from e
        except httpx.HTTPError as e:
            raise NotificationError(f"Email provider request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning(
                "email_rejected",
                to=message.to,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise NotificationError(f"Email provider returned status {response.status_code}")

        try:
            message_id = response.json().get("id")
        except ValueError:
            message_id = None

        logger.info("email_sent", to=message.to, subject=message.subject, message_id=message_id)
        return message_id
