"""Shared fixtures: in-memory SQLite database, users, a fake clock and an API client."""

import os

# Must be set before ops_tracker reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ops_tracker.core import build_engine, create_access_token, get_session
from ops_tracker.main import app, create_stats_cache
from ops_tracker.models import Base, User, UserRole, WorkItem, WorkItemType


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc))


# =============================================================================
# USERS
# =============================================================================


@pytest.fixture
async def admin(session: AsyncSession) -> User:
    user = User(email="admin@example.com", name="Avery Admin", role=UserRole.ADMIN)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
async def member(session: AsyncSession) -> User:
    user = User(email="member@example.com", name="Morgan Member", role=UserRole.MEMBER)
    session.add(user)
    await session.commit()
    return user


@pytest.fixture
def make_item(session: AsyncSession, member: User, clock: FakeClock):
    """Factory inserting a work item directly, bypassing the service layer."""

    async def _make(**fields) -> WorkItem:
        fields.setdefault("type", WorkItemType.GENERAL)
        fields.setdefault("title", "Spring newsletter")
        fields.setdefault("requester_id", member.id)
        fields.setdefault("created_at", clock())
        fields.setdefault("updated_at", clock())
        item = WorkItem(**fields)
        session.add(item)
        await session.flush()
        return item

    return _make


# =============================================================================
# API
# =============================================================================


@pytest.fixture
async def client(session_factory, admin: User, member: User) -> AsyncClient:
    async def override_get_session():
        async with session_factory() as request_session:
            try:
                yield request_session
                await request_session.commit()
            except Exception:
                await request_session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.state.stats_cache = create_stats_cache()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers(admin: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(admin.id))}"}


@pytest.fixture
def member_headers(member: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(str(member.id))}"}
