"""
Shared pytest configuration for teammind tests.

Service tests run against an in-memory SQLite database (aiosqlite) so they
need no running PostgreSQL server.
"""

import os

os.environ.setdefault("ENV", "test")

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from teammind.database.db import Base  # noqa: E402
from teammind.database.models import Field, Profile  # noqa: E402
from teammind.services import match_service, profile_service  # noqa: E402
from teammind.services import realtime_manager  # noqa: E402
from teammind.utils.datetime_utils import utcnow  # noqa: E402


@pytest_asyncio.fixture
async def session_maker():
    """Fresh in-memory database per test; StaticPool shares it across sessions."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker):
    """Session on the per-test database."""
    async with session_maker() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_realtime_manager():
    """Give each test its own realtime manager singleton."""
    realtime_manager._realtime_manager = None
    yield
    realtime_manager._realtime_manager = None


@pytest_asyncio.fixture
async def home_field(db_session):
    """Primary test field."""
    field = Field(name="Lubetkin Field", slug="lubetkin", location="100 Lock Street")
    db_session.add(field)
    await db_session.flush()
    return field


@pytest_asyncio.fixture
async def away_field(db_session):
    """Second test field."""
    field = Field(name="Frederick Douglass Field", slug="frederick-douglass", location="42 Warren Street")
    db_session.add(field)
    await db_session.flush()
    return field


@pytest_asyncio.fixture
async def player(db_session, home_field):
    """An onboarded intermediate midfielder whose home field is home_field."""
    return await profile_service.complete_onboarding(
        db_session,
        "player-1",
        skill_level="intermediate",
        preferred_position="midfielder",
        home_field_id=home_field.id,
        full_name="Test Player",
        email="player1@example.com",
    )


@pytest_asyncio.fixture
async def organizer(db_session):
    """A profile that creates matches."""
    profile = Profile(id="organizer-1", email="organizer@example.com", full_name="Organizer", roles=[])
    db_session.add(profile)
    await db_session.flush()
    return profile


async def add_profile(session, user_id, skill_level="intermediate", position="midfielder"):
    """Insert a plain onboarded profile."""
    profile = Profile(
        id=user_id,
        email=f"{user_id}@example.com",
        full_name=user_id.title(),
        skill_level=skill_level,
        preferred_position=position,
        roles=[],
    )
    session.add(profile)
    await session.flush()
    return profile


async def create_future_match(session, organizer_id, field_id, hours_ahead=24, **kwargs):
    """Create a match scheduled ``hours_ahead`` from now."""
    return await match_service.create_match(
        session,
        created_by=organizer_id,
        field_id=field_id,
        scheduled_at=utcnow() + timedelta(hours=hours_ahead),
        **kwargs,
    )
