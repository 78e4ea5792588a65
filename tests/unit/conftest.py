import pytest
from unittest.mock import AsyncMock, MagicMock

from tests.fakes import AllowAllRateLimiter, FixedClock, RecordingNotificationSender


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    # Mock repositories
    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock(return_value=None)

    uow.verification_tokens = MagicMock()
    uow.verification_tokens.create = AsyncMock(side_effect=lambda token: token)
    uow.verification_tokens.find_active = AsyncMock(return_value=None)
    uow.verification_tokens.increment_attempts = AsyncMock(return_value=1)
    uow.verification_tokens.delete_by_id = AsyncMock(return_value=True)
    uow.verification_tokens.delete_all_for = AsyncMock(return_value=0)

    uow.audit_events = MagicMock()
    uow.audit_events.create = AsyncMock(side_effect=lambda event: event)
    return uow


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def rate_limiter():
    return AllowAllRateLimiter()


@pytest.fixture
def notification_sender():
    return RecordingNotificationSender()
