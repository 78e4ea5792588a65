from typing import Optional
from uuid import UUID

from sqlmodel import delete, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.verification_token_repository import IVerificationTokenRepository
from src.domain.entities import TokenPurpose, VerificationToken


class VerificationTokenRepository(IVerificationTokenRepository):
    """VerificationToken repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, token: VerificationToken) -> VerificationToken:
        """Create a new verification token"""
        self.session.add(token)
        await self.session.flush()
        await self.session.refresh(token)
        return token

    async def find_active(self, email: str, purpose: TokenPurpose) -> Optional[VerificationToken]:
        """Get the token occupying the (email, purpose) slot, expired or not"""
        stmt = select(VerificationToken).where(
            VerificationToken.email == email,
            VerificationToken.purpose == purpose,
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def increment_attempts(self, token_id: UUID) -> Optional[int]:
        """
        Atomically add one attempt and return the new count.

        A single UPDATE ... RETURNING takes the row lock, so the count read
        back is the one this statement wrote.
        """
        stmt = (
            update(VerificationToken)
            .where(VerificationToken.id == token_id)
            .values(attempts=VerificationToken.attempts + 1)
            .returning(VerificationToken.attempts)
        )
        result = await self.session.execute(stmt)
        new_count = result.scalar_one_or_none()
        await self.session.flush()
        return new_count

    async def delete_by_id(self, token_id: UUID) -> bool:
        """Delete a token; False if it was already gone"""
        stmt = delete(VerificationToken).where(VerificationToken.id == token_id)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def delete_all_for(self, email: str, purpose: TokenPurpose) -> int:
        """Delete every token for (email, purpose)"""
        stmt = delete(VerificationToken).where(
            VerificationToken.email == email,
            VerificationToken.purpose == purpose,
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
