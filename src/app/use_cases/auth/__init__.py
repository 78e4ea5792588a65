"""
Password Reset Use Cases

Two-step email OTP flow: start (issue code) and verify (exchange code for
a reset authorization).
"""

from .start_password_reset_use_case import StartPasswordResetUseCase
from .verify_password_reset_use_case import VerifyPasswordResetUseCase
from .policy import PasswordResetPolicy
from .dtos import (
    StartPasswordResetResponse,
    VerifyPasswordResetResponse,
)

__all__ = [
    # Use Cases
    "StartPasswordResetUseCase",
    "VerifyPasswordResetUseCase",
    # Configuration
    "PasswordResetPolicy",
    # DTOs - Responses
    "StartPasswordResetResponse",
    "VerifyPasswordResetResponse",
]
