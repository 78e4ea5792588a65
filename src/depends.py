import logging

from fastapi import Depends, Request, status
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.libs.result import Error
from src.adapter.services.notification_sender import (
    ConsoleNotificationSender,
    HttpEmailNotificationSender,
)
from src.adapter.services.rate_limiter import (
    InMemoryRateLimiter,
    RedisRateLimiter,
    create_redis_client,
)
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.api.error import ClientError
from src.api.utils.csrf import OriginCsrfValidator
from src.app.services.clock import Clock, SystemClock
from src.app.services.notification_sender import NotificationSender
from src.app.services.rate_limiter import RateLimiter
from src.app.use_cases.auth import PasswordResetPolicy

logger = logging.getLogger(__name__)

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


def build_rate_limiter(config) -> RateLimiter:
    backend = str(config.RATE_LIMIT_BACKEND).lower()
    if backend == "redis":
        return RedisRateLimiter(create_redis_client(config.REDIS_URL))
    if backend != "memory":
        raise ValueError(f"Unknown RATE_LIMIT_BACKEND: {config.RATE_LIMIT_BACKEND}")
    return InMemoryRateLimiter()


def build_notification_sender(config) -> NotificationSender:
    backend = str(config.NOTIFICATION_BACKEND).lower()
    if backend == "http":
        return HttpEmailNotificationSender(
            api_url=config.EMAIL_API_URL,
            api_token=config.EMAIL_API_TOKEN,
            from_address=config.EMAIL_FROM_ADDRESS,
            from_name=config.EMAIL_FROM_NAME,
            expires_minutes=int(config.RESET_OTP_TTL_SECONDS) // 60,
            timeout=config.EMAIL_TIMEOUT_SECONDS,
        )
    if backend != "console":
        raise ValueError(f"Unknown NOTIFICATION_BACKEND: {config.NOTIFICATION_BACKEND}")
    if config.ENVIRONMENT != "development":
        logger.warning("Console notification sender in use outside development; codes are logged")
    return ConsoleNotificationSender()


rate_limiter = build_rate_limiter(ApplicationConfig)
notification_sender = build_notification_sender(ApplicationConfig)
csrf_validator = OriginCsrfValidator(
    allowed_origins=ApplicationConfig.CSRF_ALLOWED_ORIGINS,
    development=ApplicationConfig.ENVIRONMENT == "development",
    trust_proxy_headers=ApplicationConfig.TRUST_PROXY_HEADERS,
)
password_reset_policy = PasswordResetPolicy.from_config(ApplicationConfig)
system_clock = SystemClock()


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


def get_notification_sender() -> NotificationSender:
    return notification_sender


def get_clock() -> Clock:
    return system_clock


def get_password_reset_policy() -> PasswordResetPolicy:
    return password_reset_policy


def get_csrf_validator() -> OriginCsrfValidator:
    return csrf_validator


async def verify_csrf(
    request: Request, validator: OriginCsrfValidator = Depends(get_csrf_validator)
):
    """
    Dependency rejecting cross-site requests.

    Raises:
        ClientError: 403 if the request origin cannot be trusted
    """
    if not validator.is_valid(request):
        raise ClientError(
            Error("CSRF_FAILED", "CSRF validation failed"),
            status_code=status.HTTP_403_FORBIDDEN,
        )
