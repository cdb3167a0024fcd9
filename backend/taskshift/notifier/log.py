"""Notifier that logs messages instead of sending them (development)."""

from taskshift.core.logging import get_logger
from taskshift.notifier.base import EmailMessage, Notifier

logger = get_logger("notifier.log")


class LogNotifier(Notifier):
    """Writes each message to the log. Used when no email API key is set."""

    async def send(self, message: EmailMessage) -> str | None:
        logger.info(
            "email_logged",
            to=message.to,
            sender=message.sender,
            subject=message.subject,
            html_length=len(message.html),
        )
        return None
