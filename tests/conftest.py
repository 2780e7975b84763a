"""
Pytest configuration and shared fixtures.

Tests run against a throwaway SQLite database (aiosqlite) created per test
from the model metadata, so no external services are needed.
"""

import os
import uuid
from datetime import date, datetime, timedelta, timezone

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./hiring_pipeline_test.db")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from hiring_pipeline.db.base import Base
from hiring_pipeline import models  # noqa: F401  (registers tables)
from hiring_pipeline.schemas.common import TimeSlotInput
from hiring_pipeline.schemas.panel import PanelCreate
from hiring_pipeline.schemas.workflow import WorkflowCreate
from hiring_pipeline.services.panel_service import PanelService
from hiring_pipeline.services.slot_store import SlotStore
from hiring_pipeline.services.workflow_state_machine import WorkflowStateMachine


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no database")
    config.addinivalue_line("markers", "db: uses the per-test SQLite database")


class FrozenClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on DateTime columns; treat naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def slots(*pairs):
    return [TimeSlotInput(start_time=start, end_time=end) for start, end in pairs]


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
async def panel(db):
    service = PanelService(db)
    return await service.create_panel(
        PanelCreate(
            name="Backend Panel",
            description="Senior backend interviewers",
            members=[uuid.uuid4(), uuid.uuid4()],
        )
    )


@pytest.fixture
async def panel_with_day(db, panel, clock):
    """Panel with two free slots on 2024-06-10."""
    store = SlotStore(db, clock=clock)
    await store.upsert_availability(
        panel.id,
        date(2024, 6, 10),
        slots(("09:00", "10:00"), ("14:00", "15:00")),
    )
    return await store.get_panel(panel.id, refresh=True)


@pytest.fixture
def machine(db, clock):
    return WorkflowStateMachine(db, clock=clock)


@pytest.fixture
async def workflow(machine):
    return await machine.create_workflow(
        WorkflowCreate(
            application_id=uuid.uuid4(),
            campaign_id=uuid.uuid4(),
            candidate_name="Ada Lovelace",
        )
    )
