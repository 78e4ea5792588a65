from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import TokenPurpose, VerificationToken


class IVerificationTokenRepository(ABC):
    """VerificationToken repository interface - application layer"""

    @abstractmethod
    async def create(self, token: VerificationToken) -> VerificationToken:
        """Create a new verification token"""
        pass

    @abstractmethod
    async def find_active(self, email: str, purpose: TokenPurpose) -> Optional[VerificationToken]:
        """Get the token occupying the (email, purpose) slot, expired or not"""
        pass

    @abstractmethod
    async def increment_attempts(self, token_id: UUID) -> Optional[int]:
        """
        Atomically add one attempt and return the new count.

        The returned value is the serialized result of the increment, so two
        concurrent callers never observe the same count. Returns None if the
        token no longer exists.
        """
        pass

    @abstractmethod
    async def delete_by_id(self, token_id: UUID) -> bool:
        """Delete a token; False if it was already gone"""
        pass

    @abstractmethod
    async def delete_all_for(self, email: str, purpose: TokenPurpose) -> int:
        """Delete every token for (email, purpose); returns the number removed"""
        pass
