import logging
from typing import Optional

import httpx

from src.app.services.notification_sender import NotificationError, NotificationSender
from src.app.use_cases.auth.validators import mask_email
from src.domain.entities import TokenPurpose

logger = logging.getLogger(__name__)

_SUBJECTS = {
    TokenPurpose.RESET: "Your password reset code",
}


def _subject_for(purpose: TokenPurpose) -> str:
    return _SUBJECTS.get(purpose, "Your verification code")


def _text_body(code: str, purpose: TokenPurpose, expires_minutes: int) -> str:
    return (
        f"{_subject_for(purpose)}\n\n"
        f"Your code is: {code}\n\n"
        f"This code expires in {expires_minutes} minutes. "
        f"If you did not request it, you can ignore this email."
    )


class ConsoleNotificationSender(NotificationSender):
    """Development sender: writes the code to the application log"""

    async def send(self, email: str, code: str, purpose: TokenPurpose) -> None:
        logger.info(f"[dev] {purpose.value} code for {email}: {code}")


class HttpEmailNotificationSender(NotificationSender):
    """
    Sends codes through a transactional email HTTP API.

    Posts a JSON message with a bearer token; any transport error or
    non-2xx status is raised as NotificationError.
    """

    def __init__(
        self,
        api_url: str,
        api_token: str,
        from_address: str,
        from_name: str = "",
        expires_minutes: int = 10,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_url = api_url
        self.api_token = api_token
        self.from_address = from_address
        self.from_name = from_name
        self.expires_minutes = expires_minutes
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def send(self, email: str, code: str, purpose: TokenPurpose) -> None:
        if not self.api_token:
            raise NotificationError("Email API token is not configured")

        payload = {
            "from": {"address": self.from_address, "name": self.from_name},
            "to": [{"address": email}],
            "subject": _subject_for(purpose),
            "text": _text_body(code, purpose, self.expires_minutes),
        }
        headers = {"Authorization": f"Bearer {self.api_token}"}

        try:
            response = await self.client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise NotificationError(f"Email API request failed: {type(exc).__name__}") from exc

        if response.status_code not in (200, 201, 202):
            raise NotificationError(f"Email API returned status {response.status_code}")

        logger.info(f"Sent {purpose.value} code email to {mask_email(email)}")

    async def aclose(self) -> None:
        await self.client.aclose()
