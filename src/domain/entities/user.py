"""
User Entity

Account owner looked up by email when a reset is requested.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel


class User(SQLModel, table=True):
    """
    User entity - read-only to the password reset flow.

    Business Rules:
    - Email is unique and stored normalized (trimmed, lower-cased)
    - Soft-deleted users (deleted_at set) never receive reset codes
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    display_name: Optional[str] = Field(default=None, max_length=255)

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.utcnow(), sa_column=Column(DateTime)
    )
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
