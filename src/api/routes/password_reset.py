from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from src.libs.result import Error
from src.api.error import ClientError, ServerError
from src.api.utils.http import json_body, no_cache, require_json_body
from src.app.services.clock import Clock
from src.app.services.notification_sender import NotificationSender
from src.app.services.rate_limiter import RateLimiter
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.auth import (
    PasswordResetPolicy,
    StartPasswordResetResponse,
    StartPasswordResetUseCase,
    VerifyPasswordResetResponse,
    VerifyPasswordResetUseCase,
)
from src.app.use_cases.auth.validators import validate_email, validate_reset_code
from src.depends import (
    get_clock,
    get_notification_sender,
    get_password_reset_policy,
    get_rate_limiter,
    get_unit_of_work,
    verify_csrf,
)

# Dependencies run in order: CSRF is checked before the body is read
router = APIRouter(
    prefix="/auth/forgot",
    tags=["Password Reset"],
    dependencies=[Depends(no_cache), Depends(verify_csrf), Depends(require_json_body)],
)

# Verification failures share a status and differ only by code and message
VERIFY_CLIENT_ERRORS = ("NO_PENDING_REQUEST", "CODE_EXPIRED", "TOO_MANY_ATTEMPTS", "INVALID_CODE")


def _raise_rate_limited(error: Error):
    retry_after = int((error.details or {}).get("retry_after", 0))
    raise ClientError(
        error,
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers={"Retry-After": str(retry_after)},
        extra={"retryAfter": retry_after},
    )


class StartPasswordResetRequest(BaseModel):
    """
    Start password reset HTTP request payload

    The email is normalized (trimmed, lower-cased) during validation.
    """

    email: str = Field(..., description="Email address of the account")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return validate_email(value)


@router.post("/start", status_code=status.HTTP_200_OK, response_model=StartPasswordResetResponse)
async def start_password_reset(
    payload: StartPasswordResetRequest = Depends(json_body(StartPasswordResetRequest)),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    notification_sender: NotificationSender = Depends(get_notification_sender),
    clock: Clock = Depends(get_clock),
    policy: PasswordResetPolicy = Depends(get_password_reset_policy),
):
    """
    Start Password Reset

    Emails a 6-digit code, valid for 10 minutes, to the account owner.

    Security:
        - No email enumeration (same response for valid/invalid emails)
        - Rate limited per email (3 per 15 minutes)
        - Code stored as SHA-256 hash only

    Raises:
        - 400 Bad Request: Malformed email
        - 403 Forbidden: CSRF validation failed
        - 429 Too Many Requests: Rate limited (retryAfter in body and header)
        - 500 Internal Server Error: Code could not be delivered
    """
    use_case = StartPasswordResetUseCase(
        uow, rate_limiter, notification_sender, clock=clock, policy=policy
    )
    result = await use_case.execute(payload.email)

    # Handle errors
    if result.is_err():
        error = result.error
        if error.code == "RATE_LIMITED":
            _raise_rate_limited(error)
        raise ServerError(error)

    return result.value


class VerifyPasswordResetRequest(BaseModel):
    """
    Verify password reset HTTP request payload

    Requires exactly six ASCII digits for the code.
    """

    email: str = Field(..., description="Email address the code was sent to")
    code: str = Field(..., description="6-digit code from the email")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return validate_email(value)

    @field_validator("code")
    @classmethod
    def check_code(cls, value: str) -> str:
        return validate_reset_code(value)


@router.post("/verify", status_code=status.HTTP_200_OK, response_model=VerifyPasswordResetResponse)
async def verify_password_reset(
    payload: VerifyPasswordResetRequest = Depends(json_body(VerifyPasswordResetRequest)),
    uow: UnitOfWork = Depends(get_unit_of_work),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    clock: Clock = Depends(get_clock),
    policy: PasswordResetPolicy = Depends(get_password_reset_policy),
):
    """
    Verify Password Reset Code

    Exchanges a valid code for a single-use reset token valid for 5 minutes.
    The reset token is returned once and only its hash is stored.

    Raises:
        - 400 Bad Request: Malformed body, no pending request, expired code,
          too many attempts, or invalid code (distinguished by error code)
        - 403 Forbidden: CSRF validation failed
        - 429 Too Many Requests: Rate limited
        - 500 Internal Server Error: Server error
    """
    use_case = VerifyPasswordResetUseCase(uow, rate_limiter, clock=clock, policy=policy)
    result = await use_case.execute(payload.email, payload.code)

    # Handle errors
    if result.is_err():
        error = result.error
        if error.code == "RATE_LIMITED":
            _raise_rate_limited(error)
        elif error.code in VERIFY_CLIENT_ERRORS:
            raise ClientError(error, status_code=status.HTTP_400_BAD_REQUEST)
        raise ServerError(error)

    return result.value
