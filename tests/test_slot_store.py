"""Availability upserts, range queries, deletion and slot booking."""

import asyncio
import uuid
from datetime import date

import pytest

from hiring_pipeline.errors import NotFoundError, SlotConflictError, ValidationError
from hiring_pipeline.repositories.panel_repository import PanelRepository
from hiring_pipeline.services.slot_store import SlotStore
from tests.conftest import slots

pytestmark = pytest.mark.db

DAY = date(2024, 6, 10)


async def test_upsert_creates_entry_with_unbooked_slots(db, panel, clock):
    store = SlotStore(db, clock=clock)

    updated = await store.upsert_availability(panel.id, DAY, slots(("09:00", "10:00"), ("10:00", "11:00")))

    assert len(updated.availability) == 1
    entry = updated.availability[0]
    assert entry.date == DAY
    assert [(s.start_time, s.end_time) for s in entry.time_slots] == [("09:00", "10:00"), ("10:00", "11:00")]
    assert not any(s.is_booked for s in entry.time_slots)


async def test_upsert_replaces_whole_day_including_booked_slots(db, panel_with_day, clock):
    store = SlotStore(db, clock=clock)
    first_slot = panel_with_day.availability[0].time_slots[0]
    await store.book_slot(panel_with_day.id, DAY, first_slot.id, uuid.uuid4())

    updated = await store.upsert_availability(panel_with_day.id, DAY, slots(("16:00", "17:00")))

    assert len(updated.availability) == 1
    remaining = updated.availability[0].time_slots
    assert [(s.start_time, s.end_time, s.is_booked) for s in remaining] == [("16:00", "17:00", False)]


async def test_upsert_rejects_unordered_slot_and_writes_nothing(db, panel, clock):
    store = SlotStore(db, clock=clock)

    with pytest.raises(ValidationError) as exc_info:
        await store.upsert_availability(panel.id, DAY, slots(("09:00", "10:00"), ("11:00", "11:00")))

    assert exc_info.value.details[0]["field"] == "time_slots[1]"
    assert await store.list_availability(panel.id) == []


async def test_upsert_rejects_empty_slot_list(db, panel, clock):
    store = SlotStore(db, clock=clock)

    with pytest.raises(ValidationError):
        await store.upsert_availability(panel.id, DAY, [])


async def test_upsert_unknown_panel(db, clock):
    store = SlotStore(db, clock=clock)

    with pytest.raises(NotFoundError):
        await store.upsert_availability(uuid.uuid4(), DAY, slots(("09:00", "10:00")))


async def test_query_available_hides_booked_slots_and_full_days(db, panel, clock):
    store = SlotStore(db, clock=clock)
    await store.upsert_availability(panel.id, date(2024, 6, 10), slots(("09:00", "10:00"), ("11:00", "12:00")))
    await store.upsert_availability(panel.id, date(2024, 6, 11), slots(("09:00", "10:00")))
    await store.upsert_availability(panel.id, date(2024, 6, 20), slots(("09:00", "10:00")))

    listing = {entry.date: entry for entry in await store.list_availability(panel.id)}
    await store.book_slot(panel.id, date(2024, 6, 10), listing[date(2024, 6, 10)].time_slots[0].id, uuid.uuid4())
    await store.book_slot(panel.id, date(2024, 6, 11), listing[date(2024, 6, 11)].time_slots[0].id, uuid.uuid4())

    available = await store.query_available(panel.id, date(2024, 6, 10), date(2024, 6, 15))

    assert [entry.date for entry in available] == [date(2024, 6, 10)]
    assert [(s.start_time, s.is_booked) for s in available[0].time_slots] == [("11:00", False)]


async def test_query_available_range_is_inclusive(db, panel, clock):
    store = SlotStore(db, clock=clock)
    await store.upsert_availability(panel.id, DAY, slots(("09:00", "10:00")))

    available = await store.query_available(panel.id, DAY, DAY)

    assert [entry.date for entry in available] == [DAY]


async def test_query_available_rejects_inverted_range(db, panel, clock):
    store = SlotStore(db, clock=clock)

    with pytest.raises(ValidationError):
        await store.query_available(panel.id, date(2024, 6, 12), date(2024, 6, 10))


async def test_book_slot_marks_booking(db, panel_with_day, clock):
    store = SlotStore(db, clock=clock)
    slot_id = panel_with_day.availability[0].time_slots[0].id
    workflow_id = uuid.uuid4()

    booked = await store.book_slot(panel_with_day.id, DAY, slot_id, workflow_id)

    assert booked.is_booked is True
    assert booked.booked_by_workflow_id == workflow_id
    assert booked.booked_at is not None


async def test_book_slot_twice_conflicts(db, panel_with_day, clock):
    store = SlotStore(db, clock=clock)
    panel_id = panel_with_day.id
    slot_id = panel_with_day.availability[0].time_slots[0].id
    first = uuid.uuid4()
    await store.book_slot(panel_id, DAY, slot_id, first)

    with pytest.raises(SlotConflictError):
        await store.book_slot(panel_id, DAY, slot_id, uuid.uuid4())

    listing = await store.list_availability(panel_id)
    assert listing[0].time_slots[0].booked_by_workflow_id == first


async def test_book_slot_missing_date_or_slot(db, panel_with_day, clock):
    store = SlotStore(db, clock=clock)
    panel_id = panel_with_day.id

    with pytest.raises(NotFoundError):
        await store.book_slot(panel_id, date(2024, 6, 11), uuid.uuid4(), uuid.uuid4())
    with pytest.raises(NotFoundError):
        await store.book_slot(panel_id, DAY, uuid.uuid4(), uuid.uuid4())


async def test_conditional_update_matches_once(db, panel_with_day, clock):
    repository = PanelRepository(db)
    slot_id = panel_with_day.availability[0].time_slots[0].id

    assert await repository.mark_slot_booked(slot_id, uuid.uuid4(), clock()) is True
    assert await repository.mark_slot_booked(slot_id, uuid.uuid4(), clock()) is False
    await db.rollback()


async def test_concurrent_bookings_have_one_winner(session_factory, panel_with_day, clock):
    slot_id = panel_with_day.availability[0].time_slots[0].id

    async def attempt():
        async with session_factory() as session:
            store = SlotStore(session, clock=clock)
            return await store.book_slot(panel_with_day.id, DAY, slot_id, uuid.uuid4())

    results = await asyncio.gather(*(attempt() for _ in range(5)), return_exceptions=True)

    winners = [r for r in results if not isinstance(r, Exception)]
    conflicts = [r for r in results if isinstance(r, SlotConflictError)]
    assert len(winners) == 1
    assert len(conflicts) == 4


async def test_delete_availability_removes_entry(db, panel_with_day, clock):
    store = SlotStore(db, clock=clock)
    panel_id = panel_with_day.id
    availability_id = panel_with_day.availability[0].id

    updated = await store.delete_availability(panel_id, availability_id)

    assert updated.availability == []
    with pytest.raises(NotFoundError):
        await store.delete_availability(panel_id, availability_id)
