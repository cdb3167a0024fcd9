"""Abstract base class for email notifiers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class EmailMessage:
    """A rendered email ready to send."""

    to: str
    subject: str
    html: str
    sender: str


class Notifier(ABC):
    """Sends templated email on behalf of the API.

    Implementations raise ``NotificationError`` when delivery fails; callers
    decide whether that failure is fatal.
    """

    @abstractmethod
    async def send(self, message: EmailMessage) -> str | None:
        """Deliver the message.

        Returns:
            Provider message id, when the provider returns one
        """
        pass
