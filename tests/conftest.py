"""
Test Configuration and Fixtures
"""

import os

# Settings are read at import time, so the environment comes first
os.environ["DB_DSN"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TIMEZONE"] = "UTC"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tourops.infrastructure import get_session
from tourops.main import app
from tourops.models import Base
from tourops.services import ActivityService, ActivityTypeService, ScheduleService


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as s:
        yield s


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database."""

    async def _get_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


# ============================================================================
# SAMPLE DATA FIXTURES
# ============================================================================

BASE_START = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_activity(session):
    """Create an activity (and its type) with the given party size and prices."""

    async def _make(party_size: int = 10, adult="20.00", child="10.00", senior="15.00", title="City walk"):
        types = ActivityTypeService(session)
        activity_type = await types.type_repo.get_by_code("tour")
        if activity_type is None:
            activity_type = await types.create_type(code="tour", name="Tour")
        return await ActivityService(session).create_activity(
            activity_type_id=activity_type.id,
            title=title,
            party_size=party_size,
            adult_price=Decimal(adult),
            child_price=Decimal(child),
            senior_price=Decimal(senior),
        )

    return _make


@pytest.fixture
def make_schedule(session):
    """Create an occurrence of *activity* starting *offset_hours* after BASE_START."""

    async def _make(activity, capacity=None, offset_hours: int = 0, hours: int = 2, **kwargs):
        start = BASE_START + timedelta(hours=offset_hours)
        return await ScheduleService(session).create_schedule(
            activity_id=activity.id,
            scheduled_start=start,
            scheduled_end=start + timedelta(hours=hours),
            capacity=capacity,
            **kwargs,
        )

    return _make


def booking_payload(schedule_id: str, people: int = 2, **overrides):
    """Valid booking payload: all adults, no transport."""
    payload = {
        "activity_schedule_id": schedule_id,
        "customer_name": "Ana Torres",
        "number_of_people": people,
        "adult_count": people,
        "child_count": 0,
        "senior_count": 0,
        "transport": False,
    }
    payload.update(overrides)
    return payload
