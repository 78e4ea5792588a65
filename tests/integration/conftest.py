import json
from datetime import datetime
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.services.rate_limiter import InMemoryRateLimiter
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.auth import PasswordResetPolicy
from src.depends import (
    get_clock,
    get_notification_sender,
    get_password_reset_policy,
    get_rate_limiter,
    get_unit_of_work,
)
from tests.fakes import FixedClock, RecordingNotificationSender

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


@pytest.fixture(scope="session")
def test_data():
    """Request payloads and expected bodies shared by the API tests"""
    with open(FIXTURES_DIR / "test_data.json", encoding="utf-8") as f:
        return json.load(f)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest.fixture
def clock():
    # Real "now" keeps created_at defaults and expiries comparable
    return FixedClock(datetime.utcnow())


@pytest.fixture
def notification_sender():
    return RecordingNotificationSender()


@pytest.fixture
def rate_limiter(clock):
    return InMemoryRateLimiter(clock=clock)


@pytest.fixture
def app(db_session, clock, notification_sender, rate_limiter):
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notification_sender] = lambda: notification_sender
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_password_reset_policy] = lambda: PasswordResetPolicy()
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Sec-Fetch-Site": "same-origin"},
    ) as ac:
        yield ac
