"""Transactional email delivery."""

from taskshift.core.config import Settings
from taskshift.notifier.base import EmailMessage, Notifier
from taskshift.notifier.log import LogNotifier
from taskshift.notifier.resend import ResendNotifier


def build_notifier(settings: Settings) -> Notifier:
    """Pick the notifier for the configured environment."""
    if settings.resend_api_key:
        return ResendNotifier(
            api_key=settings.resend_api_key,
            api_url=settings.resend_api_url,
            timeout_seconds=settings.email_timeout_seconds,
        )
    return LogNotifier()


__all__ = [
    "EmailMessage",
    "LogNotifier",
    "Notifier",
    "ResendNotifier",
    "build_notifier",
]
