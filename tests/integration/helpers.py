from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.domain.entities import TokenPurpose, User, VerificationToken


async def create_user(
    db_session: AsyncSession, email: str = "user@test.com", deleted_at=None
) -> User:
    user = User(email=email, display_name="Test User", deleted_at=deleted_at)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def get_tokens(db_session: AsyncSession, email: str, purpose: TokenPurpose):
    """Read tokens fresh from the database, bypassing the identity map"""
    db_session.expire_all()
    stmt = select(VerificationToken).where(
        VerificationToken.email == email, VerificationToken.purpose == purpose
    )
    result = await db_session.exec(stmt)
    return result.all()
