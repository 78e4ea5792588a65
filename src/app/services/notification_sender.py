from abc import ABC, abstractmethod

from src.domain.entities import TokenPurpose


class NotificationError(Exception):
    """Raised when a one-time code could not be delivered"""


class NotificationSender(ABC):
    """Delivers one-time codes to an email address"""

    @abstractmethod
    async def send(self, email: str, code: str, purpose: TokenPurpose) -> None:
        """
        Deliver code to email.

        Raises:
            NotificationError: delivery failed; the code must be treated as unsent
        """
        pass
