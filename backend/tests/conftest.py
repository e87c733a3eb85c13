"""
Pytest fixtures for test database, client, and authentication.

Every test gets a fresh schema. By default that is a SQLite file under the
test's tmp_path (aiosqlite); set TEST_DATABASE_URL to run the same suite
against PostgreSQL. Each request and each service call gets its own session
so concurrent tests exercise real transactions.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.base import Base
from app.db.session import build_engine, get_db
from app.models import Room, User

from tests import factories
from tests.factories import auth_headers_for


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables, yield a session factory, then drop tables for isolation."""
    url = os.getenv("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'booking_test.db'}"
    engine = build_engine(url, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for seeding test data. Factories commit what they create."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get a session from the test database."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A user with no enrollment."""
    return await factories.create_user(db_session)


@pytest_asyncio.fixture
async def eligible_user(db_session: AsyncSession) -> User:
    """Enrolled user holding a paid, in-person ticket that includes the hotel."""
    return await factories.create_eligible_user(db_session)


@pytest_asyncio.fixture
async def auth_headers(eligible_user: User) -> dict:
    return auth_headers_for(eligible_user)


@pytest_asyncio.fixture
async def room(db_session: AsyncSession) -> Room:
    """Empty room with 3 beds."""
    hotel = await factories.create_hotel(db_session)
    return await factories.create_room(db_session, hotel.id, capacity=3)


@pytest_asyncio.fixture
async def other_room(db_session: AsyncSession, room: Room) -> Room:
    """Second empty room with 3 beds in the same hotel."""
    return await factories.create_room(db_session, room.hotel_id, capacity=3, name="202")


@pytest_asyncio.fixture
async def full_room(db_session: AsyncSession, room: Room) -> Room:
    """Room with 1 bed already taken by someone else."""
    single = await factories.create_room(db_session, room.hotel_id, capacity=1, name="Single")
    occupant = await factories.create_eligible_user(db_session)
    await factories.create_booking(db_session, occupant.id, single.id)
    return single
