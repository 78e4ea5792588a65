"""
Password Reset Domain Enums

Enumeration types used across domain entities.
"""

from enum import Enum


class TokenPurpose(str, Enum):
    """What a verification token authorizes"""

    RESET = "RESET"  # OTP awaiting verification
    RESET_VERIFIED = "RESET_VERIFIED"  # post-verification reset authorization
