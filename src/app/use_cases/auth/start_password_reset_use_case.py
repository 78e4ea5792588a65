"""
Start Password Reset Use Case

Issues a one-time code to the owner of an email address.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from src.libs.result import Error, Result, Return
from src.app.services.clock import Clock, SystemClock
from src.app.services.notification_sender import NotificationSender
from src.app.services.rate_limiter import RateLimiter
from src.app.services.token_security import OtpGenerator, TokenHasher
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, TokenPurpose, VerificationToken
from .dtos import StartPasswordResetResponse
from .policy import PasswordResetPolicy
from .validators import mask_email, normalize_email

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "If an account exists with this email, you will receive a reset code."


class StartPasswordResetUseCase:
    """
    Use case for starting a password reset.

    Business Rules:
    - Rate limited per email (3 requests per 15 minutes by default)
    - No email enumeration: unknown and soft-deleted accounts get the same
      response as real ones, and nothing is written for them
    - A new request replaces any pending code for the email
    - The code is stored as a SHA-256 hash and expires in 10 minutes
    - If delivery fails the new token is deleted, so no undelivered code
      stays usable
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        notification_sender: NotificationSender,
        clock: Optional[Clock] = None,
        policy: Optional[PasswordResetPolicy] = None,
        hasher: Optional[TokenHasher] = None,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.notification_sender = notification_sender
        self.clock = clock or SystemClock()
        self.policy = policy or PasswordResetPolicy()
        self.otp_generator = OtpGenerator(self.policy.otp_length)
        self.hasher = hasher or TokenHasher()

    async def execute(self, email: str) -> Result[StartPasswordResetResponse]:
        """
        Execute start password reset use case.

        Args:
            email: Email address claimed by the caller

        Returns:
            Result with the generic success response, or Error

        Errors:
            - RATE_LIMITED: Too many requests for this email (details.retry_after)
            - DELIVERY_FAILED: The code could not be sent; the token was removed
            - INTERNAL_ERROR: Persistence failure
        """
        email = normalize_email(email)

        limit = await self.rate_limiter.check(
            f"start:{email}",
            self.policy.start_rate_limit,
            self.policy.rate_limit_window_seconds,
        )
        if not limit.allowed:
            return Return.err(
                Error(
                    "RATE_LIMITED",
                    "Too many reset attempts. Please try again later.",
                    {"retry_after": limit.retry_after},
                )
            )

        response = StartPasswordResetResponse(
            success=True,
            message=GENERIC_MESSAGE,
            email=email,
            expires_in=self.policy.otp_ttl_seconds,
        )

        try:
            async with self.uow:
                user = await self.uow.users.get_by_email(email)

                if user is None or user.is_deleted:
                    logger.info(
                        f"Password reset requested for unknown account: {mask_email(email)}"
                    )
                    return Return.ok(response)

                otp = self.otp_generator.generate()
                token = VerificationToken(
                    email=email,
                    purpose=TokenPurpose.RESET,
                    token_hash=self.hasher.hash(otp),
                    attempts=0,
                    expires_at=self.clock.now() + timedelta(seconds=self.policy.otp_ttl_seconds),
                )

                # Replace any pending code for this email
                await self.uow.verification_tokens.delete_all_for(email, TokenPurpose.RESET)
                await self.uow.verification_tokens.create(token)

                await self.uow.audit_events.create(
                    AuditEvent(
                        user_id=user.id,
                        action="password_reset_requested",
                        event_metadata={"email": email, "token_id": str(token.id)},
                    )
                )
                await self.uow.commit()

                try:
                    await self.notification_sender.send(email, otp, TokenPurpose.RESET)
                except Exception:
                    logger.exception(f"Failed to deliver password reset code to {mask_email(email)}")
                    await self.uow.verification_tokens.delete_by_id(token.id)
                    await self.uow.commit()
                    return Return.err(
                        Error(
                            "DELIVERY_FAILED",
                            "Failed to send reset email. Please try again.",
                        )
                    )
        except SQLAlchemyError:
            logger.exception("Persistence error while starting password reset")
            return Return.err(Error("INTERNAL_ERROR", "An error occurred. Please try again."))

        logger.info(f"Password reset code sent to {mask_email(email)}")
        return Return.ok(response)
