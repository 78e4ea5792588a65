"""
Password Reset Domain Entities

Each entity in its own file.
"""

from .enums import TokenPurpose

from .user import User
from .verification_token import VerificationToken
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "TokenPurpose",
    # Entities
    "User",
    "VerificationToken",
    "AuditEvent",
]
