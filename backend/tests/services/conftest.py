"""Service test fixtures: async DB, seeded users/courses, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session
    - db_manager patched so the readiness probe sees the test engine
    - Round locks are cleared between tests

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (row locks are a no-op here; per-round asyncio locks still apply)
    - Callers identify themselves with the X-User-Id header; the headers_for fixture builds it
"""

import uuid

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from quiver.db.base import Base
from quiver.infrastructure.database import get_db, DatabaseSessionManager
from quiver.models.course import Course
from quiver.models.user import User
from quiver.services import round_locks
import quiver.infrastructure.database as db_module
import quiver.models  # noqa: F401
from quiver.main import app


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def client(test_engine, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    round_locks._round_locks.clear()


async def _add_user(db, name, role="user", verified=True) -> User:
    user = User(
        id=uuid.uuid4(),
        name=name,
        email=f"{name.lower()}@club.test",
        role=role,
        is_verified=verified,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def scorer(test_db):
    return await _add_user(test_db, "Robin")


@pytest.fixture
async def archer(test_db):
    return await _add_user(test_db, "Marian")


@pytest.fixture
async def unverified_archer(test_db):
    return await _add_user(test_db, "Tuck", verified=False)


@pytest.fixture
async def admin(test_db):
    return await _add_user(test_db, "Warden", role="admin")


@pytest.fixture
async def aba_course(test_db):
    course = Course(
        id=uuid.uuid4(),
        name="Sherwood 20",
        club_id=uuid.uuid4(),
        scoring_system="ABA",
        targets=20,
        arrows_per_target=3,
    )
    test_db.add(course)
    await test_db.commit()
    return course


@pytest.fixture
def headers_for():
    """Build the identity header for a seeded user."""
    def _headers(user) -> dict:
        return {"X-User-Id": str(user.id)}
    return _headers
