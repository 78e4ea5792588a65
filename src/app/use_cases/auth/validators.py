"""
Request format rules for the password reset flow.

Used by the API request models and re-applied by the use cases, so both
layers agree on what a normalized email looks like.
"""

import re

EMAIL_MIN_LENGTH = 5
EMAIL_MAX_LENGTH = 255

# ASCII only: \d would also accept other Unicode digits
RESET_CODE_PATTERN = re.compile(r"[0-9]{6}")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_email(email: str) -> str:
    """Return the normalized email, or raise ValueError if it is malformed"""
    normalized = normalize_email(email)
    if (
        "@" not in normalized
        or len(normalized) < EMAIL_MIN_LENGTH
        or len(normalized) > EMAIL_MAX_LENGTH
    ):
        raise ValueError("Please provide a valid email address")
    return normalized


def validate_reset_code(code: str) -> str:
    """Return the code if it is exactly six ASCII digits, else raise ValueError"""
    if not RESET_CODE_PATTERN.fullmatch(code):
        raise ValueError("Please provide a valid 6-digit code")
    return code


def mask_email(email: str) -> str:
    """Log-safe form of an address: first character of the local part, full domain"""
    local, sep, domain = email.partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"
