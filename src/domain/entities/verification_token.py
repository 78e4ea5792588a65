"""
VerificationToken Entity

Email-bound secrets for the two-step password reset flow.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel, UniqueConstraint

from .enums import TokenPurpose


class VerificationToken(SQLModel, table=True):
    """
    VerificationToken entity - hashed one-time secrets bound to an email.

    Business Rules:
    - At most one token per (email, purpose)
    - Only the SHA-256 hash of the secret is stored
    - RESET tokens expire after 10 minutes and allow 5 verification attempts
    - RESET_VERIFIED tokens expire after 5 minutes and are single-use
    """

    __tablename__ = "verification_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    email: str = Field(max_length=255)
    purpose: TokenPurpose = Field(index=True)
    token_hash: str = Field(max_length=64)  # SHA-256 output

    attempts: int = Field(default=0)

    # Timestamps
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )

    __table_args__ = (
        UniqueConstraint("email", "purpose", name="uq_verification_token_email_purpose"),
        Index("idx_verification_token_expires_at", "expires_at"),
    )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
