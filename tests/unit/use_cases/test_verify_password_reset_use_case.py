"""
Unit tests for VerifyPasswordResetUseCase

Tests all business logic with mocked dependencies.
"""
import re
from datetime import timedelta

import pytest

from src.app.services.token_security import TokenHasher
from src.app.use_cases.auth import VerifyPasswordResetUseCase
from src.domain.entities import TokenPurpose, VerificationToken
from tests.fakes import DenyAllRateLimiter

CODE = "123456"


def make_reset_token(clock, code: str = CODE, attempts: int = 0, ttl_minutes: int = 10):
    return VerificationToken(
        email="user@test.com",
        purpose=TokenPurpose.RESET,
        token_hash=TokenHasher().hash(code),
        attempts=attempts,
        expires_at=clock.now() + timedelta(minutes=ttl_minutes),
    )


@pytest.fixture
def use_case(mock_uow, rate_limiter, clock):
    return VerifyPasswordResetUseCase(mock_uow, rate_limiter, clock=clock)


@pytest.mark.asyncio
async def test_verify_correct_code(mock_uow, use_case, clock):
    """Correct code: RESET token consumed, RESET_VERIFIED token created"""
    # Arrange
    token = make_reset_token(clock)
    mock_uow.verification_tokens.find_active.return_value = token

    # Act
    result = await use_case.execute("user@test.com", CODE)

    # Assert
    assert result.is_ok()
    data = result.value
    assert data.success is True
    assert data.email == "user@test.com"
    assert data.expires_in == 300
    assert re.fullmatch(r"[0-9a-f]{64}", data.reset_token)
    assert data.reset_token != CODE

    mock_uow.verification_tokens.delete_by_id.assert_called_once_with(token.id)
    mock_uow.verification_tokens.delete_all_for.assert_called_once_with(
        "user@test.com", TokenPurpose.RESET_VERIFIED
    )

    verified = mock_uow.verification_tokens.create.call_args.args[0]
    assert verified.purpose == TokenPurpose.RESET_VERIFIED
    assert verified.email == "user@test.com"
    assert verified.token_hash == TokenHasher().hash(data.reset_token)
    assert verified.expires_at == clock.now() + timedelta(minutes=5)


@pytest.mark.asyncio
async def test_verify_no_pending_request(mock_uow, use_case):
    """No RESET token for the email"""
    mock_uow.verification_tokens.find_active.return_value = None

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_err()
    assert result.error.code == "NO_PENDING_REQUEST"
    assert result.error.message == "No reset request found for this email"
    mock_uow.verification_tokens.increment_attempts.assert_not_called()


@pytest.mark.asyncio
async def test_verify_expired_code_deletes_token(mock_uow, use_case, clock):
    """Expired code: token deleted, no attempt consumed"""
    token = make_reset_token(clock)
    mock_uow.verification_tokens.find_active.return_value = token
    clock.advance(minutes=10)  # now == expires_at counts as expired

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_err()
    assert result.error.code == "CODE_EXPIRED"
    mock_uow.verification_tokens.delete_by_id.assert_called_once_with(token.id)
    mock_uow.verification_tokens.increment_attempts.assert_not_called()
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_verify_invalid_code_keeps_token(mock_uow, use_case, clock):
    """Wrong code: attempt counted and committed, token kept"""
    token = make_reset_token(clock)
    mock_uow.verification_tokens.find_active.return_value = token
    mock_uow.verification_tokens.increment_attempts.return_value = 1

    result = await use_case.execute("user@test.com", "654321")

    assert result.is_err()
    assert result.error.code == "INVALID_CODE"
    mock_uow.verification_tokens.increment_attempts.assert_called_once_with(token.id)
    mock_uow.verification_tokens.delete_by_id.assert_not_called()
    mock_uow.verification_tokens.create.assert_not_called()
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_verify_attempt_cap_deletes_token(mock_uow, use_case, clock):
    """Fifth attempt reaches the cap: token deleted even before comparing"""
    token = make_reset_token(clock, attempts=4)
    mock_uow.verification_tokens.find_active.return_value = token
    mock_uow.verification_tokens.increment_attempts.return_value = 5

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_err()
    assert result.error.code == "TOO_MANY_ATTEMPTS"
    assert result.error.message == "Too many failed attempts. Please request a new code."
    mock_uow.verification_tokens.delete_by_id.assert_called_once_with(token.id)
    mock_uow.verification_tokens.create.assert_not_called()

    event = mock_uow.audit_events.create.call_args.args[0]
    assert event.action == "password_reset_locked"


@pytest.mark.asyncio
async def test_verify_uses_incremented_count_not_loaded_value(mock_uow, use_case, clock):
    """The threshold is checked against the storage's post-increment count"""
    # Loaded value is stale (another request already incremented to 4)
    token = make_reset_token(clock, attempts=0)
    mock_uow.verification_tokens.find_active.return_value = token
    mock_uow.verification_tokens.increment_attempts.return_value = 5

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_err()
    assert result.error.code == "TOO_MANY_ATTEMPTS"


@pytest.mark.asyncio
async def test_verify_token_vanished_during_increment(mock_uow, use_case, clock):
    """Token deleted by a concurrent request between read and increment"""
    mock_uow.verification_tokens.find_active.return_value = make_reset_token(clock)
    mock_uow.verification_tokens.increment_attempts.return_value = None

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_err()
    assert result.error.code == "NO_PENDING_REQUEST"


@pytest.mark.asyncio
async def test_verify_code_consumed_concurrently(mock_uow, use_case, clock):
    """A correct code already consumed by another request does not mint a second token"""
    mock_uow.verification_tokens.find_active.return_value = make_reset_token(clock)
    mock_uow.verification_tokens.delete_by_id.return_value = False

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_err()
    assert result.error.code == "NO_PENDING_REQUEST"
    mock_uow.verification_tokens.create.assert_not_called()


@pytest.mark.asyncio
async def test_verify_rate_limited(mock_uow, clock):
    """Rate-limited requests never touch storage"""
    use_case = VerifyPasswordResetUseCase(mock_uow, DenyAllRateLimiter(retry_after=60), clock=clock)

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_err()
    assert result.error.code == "RATE_LIMITED"
    assert result.error.details == {"retry_after": 60}
    mock_uow.verification_tokens.find_active.assert_not_called()


@pytest.mark.asyncio
async def test_verify_rate_limit_key_is_namespaced(mock_uow, use_case, rate_limiter):
    """Verify limits are keyed separately from start limits"""
    await use_case.execute(" USER@test.com", CODE)

    assert rate_limiter.keys == ["verify:user@test.com"]
    mock_uow.verification_tokens.find_active.assert_called_once_with(
        "user@test.com", TokenPurpose.RESET
    )


@pytest.mark.asyncio
async def test_verify_creates_audit_event_without_secret(mock_uow, use_case, clock):
    """Successful verification is audited without the reset token"""
    mock_uow.verification_tokens.find_active.return_value = make_reset_token(clock)

    result = await use_case.execute("user@test.com", CODE)

    assert result.is_ok()
    event = mock_uow.audit_events.create.call_args.args[0]
    assert event.action == "password_reset_code_verified"
    assert result.value.reset_token not in event.event_metadata.values()
    assert CODE not in event.event_metadata.values()
