"""
Verify Password Reset Use Case

Exchanges a valid one-time code for a short-lived reset authorization.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from src.libs.result import Error, Result, Return
from src.app.services.clock import Clock, SystemClock
from src.app.services.rate_limiter import RateLimiter
from src.app.services.token_security import TokenHasher, generate_reset_secret
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, TokenPurpose, VerificationToken
from .dtos import VerifyPasswordResetResponse
from .policy import PasswordResetPolicy
from .validators import mask_email, normalize_email

logger = logging.getLogger(__name__)

NO_PENDING_REQUEST = Error("NO_PENDING_REQUEST", "No reset request found for this email")


class VerifyPasswordResetUseCase:
    """
    Use case for verifying a password reset code.

    Business Rules:
    - Rate limited per email (5 requests per 15 minutes by default)
    - Expired codes are deleted on first use
    - Every comparison consumes one attempt, counted atomically in storage
    - Reaching the attempt cap (5) deletes the code
    - A wrong code keeps the token so the remaining attempts stay usable
    - A correct code is consumed and replaced by a RESET_VERIFIED token
      holding the hash of a fresh 256-bit secret, valid for 5 minutes
    - The plaintext secret is returned once and never stored
    """

    def __init__(
        self,
        uow: UnitOfWork,
        rate_limiter: RateLimiter,
        clock: Optional[Clock] = None,
        policy: Optional[PasswordResetPolicy] = None,
        hasher: Optional[TokenHasher] = None,
    ):
        self.uow = uow
        self.rate_limiter = rate_limiter
        self.clock = clock or SystemClock()
        self.policy = policy or PasswordResetPolicy()
        self.hasher = hasher or TokenHasher()

    async def execute(self, email: str, code: str) -> Result[VerifyPasswordResetResponse]:
        """
        Execute verify password reset use case.

        Args:
            email: Email the code was sent to
            code: Six-digit code from the email

        Returns:
            Result with the reset authorization, or Error

        Errors:
            - RATE_LIMITED: Too many requests for this email (details.retry_after)
            - NO_PENDING_REQUEST: No code is pending for this email
            - CODE_EXPIRED: The code expired; it has been deleted
            - TOO_MANY_ATTEMPTS: Attempt cap reached; the code has been deleted
            - INVALID_CODE: Wrong code; remaining attempts are kept
            - INTERNAL_ERROR: Persistence failure
        """
        email = normalize_email(email)

        limit = await self.rate_limiter.check(
            f"verify:{email}",
            self.policy.verify_rate_limit,
            self.policy.rate_limit_window_seconds,
        )
        if not limit.allowed:
            return Return.err(
                Error(
                    "RATE_LIMITED",
                    "Too many verification attempts. Please request a new code.",
                    {"retry_after": limit.retry_after},
                )
            )

        try:
            async with self.uow:
                token = await self.uow.verification_tokens.find_active(email, TokenPurpose.RESET)
                if token is None:
                    return Return.err(NO_PENDING_REQUEST)

                token_id = token.id
                stored_hash = token.token_hash
                now = self.clock.now()

                if token.is_expired(now):
                    await self.uow.verification_tokens.delete_by_id(token_id)
                    await self.uow.commit()
                    return Return.err(
                        Error(
                            "CODE_EXPIRED",
                            "Verification code has expired. Please request a new one.",
                        )
                    )

                attempts = await self.uow.verification_tokens.increment_attempts(token_id)
                if attempts is None:
                    # Consumed or deleted by a concurrent request
                    return Return.err(NO_PENDING_REQUEST)

                if attempts >= self.policy.max_attempts:
                    await self.uow.verification_tokens.delete_by_id(token_id)
                    await self.uow.audit_events.create(
                        AuditEvent(
                            action="password_reset_locked",
                            event_metadata={"email": email, "token_id": str(token_id)},
                        )
                    )
                    await self.uow.commit()
                    logger.warning(
                        f"Password reset code locked after {attempts} attempts: {mask_email(email)}"
                    )
                    return Return.err(
                        Error(
                            "TOO_MANY_ATTEMPTS",
                            "Too many failed attempts. Please request a new code.",
                        )
                    )

                # Persist the consumed attempt before comparing
                await self.uow.commit()

                if not self.hasher.matches(code, stored_hash):
                    return Return.err(Error("INVALID_CODE", "Invalid verification code"))

                if not await self.uow.verification_tokens.delete_by_id(token_id):
                    return Return.err(NO_PENDING_REQUEST)

                reset_token = generate_reset_secret()
                await self.uow.verification_tokens.delete_all_for(email, TokenPurpose.RESET_VERIFIED)
                verified_token = VerificationToken(
                    email=email,
                    purpose=TokenPurpose.RESET_VERIFIED,
                    token_hash=self.hasher.hash(reset_token),
                    attempts=0,
                    expires_at=now + timedelta(seconds=self.policy.verified_ttl_seconds),
                )
                await self.uow.verification_tokens.create(verified_token)

                await self.uow.audit_events.create(
                    AuditEvent(
                        action="password_reset_code_verified",
                        event_metadata={"email": email, "token_id": str(verified_token.id)},
                    )
                )
                await self.uow.commit()
        except SQLAlchemyError:
            logger.exception("Persistence error while verifying password reset code")
            return Return.err(Error("INTERNAL_ERROR", "An error occurred. Please try again."))

        logger.info(f"Password reset code verified for {mask_email(email)}")
        return Return.ok(
            VerifyPasswordResetResponse(
                success=True,
                message="Code verified successfully. You can now set a new password.",
                email=email,
                reset_token=reset_token,
                expires_in=self.policy.verified_ttl_seconds,
            )
        )
