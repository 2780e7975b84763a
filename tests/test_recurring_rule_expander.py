"""Expansion of weekday rules into dated availability."""

import uuid
from datetime import date

import pytest

from hiring_pipeline.errors import NotFoundError, ValidationError
from hiring_pipeline.schemas.common import SlotTemplateInput
from hiring_pipeline.services.panel_service import PanelService
from hiring_pipeline.services.recurring_rule_expander import RecurringRuleExpander
from hiring_pipeline.services.slot_store import SlotStore
from tests.conftest import slots

pytestmark = pytest.mark.db

MONDAY = 1


@pytest.fixture
async def monday_panel(db, panel):
    service = PanelService(db)
    return await service.add_recurring_rule(
        panel.id,
        MONDAY,
        [
            SlotTemplateInput(start_time="09:00", end_time="10:00"),
            SlotTemplateInput(start_time="10:00", end_time="11:00", slot_duration=30),
        ],
    )


async def test_rule_is_stored_per_weekday(db, monday_panel):
    assert [rule.day_of_week for rule in monday_panel.recurring_rules] == [MONDAY]
    templates = monday_panel.recurring_rules[0].templates
    assert [(t.start_time, t.end_time, t.slot_duration) for t in templates] == [
        ("09:00", "10:00", 60),
        ("10:00", "11:00", 30),
    ]


async def test_rule_for_same_weekday_replaces_templates(db, monday_panel):
    service = PanelService(db)

    updated = await service.add_recurring_rule(
        monday_panel.id, MONDAY, [SlotTemplateInput(start_time="13:00", end_time="14:00")]
    )

    assert len(updated.recurring_rules) == 1
    assert [t.start_time for t in updated.recurring_rules[0].templates] == ["13:00"]


async def test_rule_rejects_bad_weekday_and_unordered_templates(db, panel):
    service = PanelService(db)

    with pytest.raises(ValidationError):
        await service.add_recurring_rule(panel.id, 7, [SlotTemplateInput(start_time="09:00", end_time="10:00")])
    with pytest.raises(ValidationError):
        await service.add_recurring_rule(panel.id, MONDAY, [SlotTemplateInput(start_time="10:00", end_time="09:00")])


async def test_expand_two_weeks_covers_two_mondays(db, monday_panel):
    expander = RecurringRuleExpander(db)

    created = await expander.expand(monday_panel.id, date(2024, 6, 3), date(2024, 6, 16))

    assert [entry.date for entry in created] == [date(2024, 6, 3), date(2024, 6, 10)]
    for entry in created:
        assert [(s.start_time, s.end_time, s.is_booked) for s in entry.time_slots] == [
            ("09:00", "10:00", False),
            ("10:00", "11:00", False),
        ]


async def test_expand_end_date_is_inclusive(db, monday_panel):
    expander = RecurringRuleExpander(db)

    created = await expander.expand(monday_panel.id, date(2024, 6, 3), date(2024, 6, 17))

    assert [entry.date for entry in created] == [date(2024, 6, 3), date(2024, 6, 10), date(2024, 6, 17)]


async def test_expand_twice_is_a_no_op(db, monday_panel):
    expander = RecurringRuleExpander(db)
    await expander.expand(monday_panel.id, date(2024, 6, 3), date(2024, 6, 16))

    again = await expander.expand(monday_panel.id, date(2024, 6, 3), date(2024, 6, 16))

    assert again == []
    listing = await SlotStore(db).list_availability(monday_panel.id)
    assert [entry.date for entry in listing] == [date(2024, 6, 3), date(2024, 6, 10)]


async def test_expand_keeps_explicit_entries(db, monday_panel):
    store = SlotStore(db)
    await store.upsert_availability(monday_panel.id, date(2024, 6, 10), slots(("15:00", "16:00")))
    expander = RecurringRuleExpander(db, slot_store=store)

    created = await expander.expand(monday_panel.id, date(2024, 6, 3), date(2024, 6, 16))

    assert [entry.date for entry in created] == [date(2024, 6, 3)]
    listing = {entry.date: entry for entry in await store.list_availability(monday_panel.id)}
    assert [s.start_time for s in listing[date(2024, 6, 10)].time_slots] == ["15:00"]


async def test_expand_without_rules_creates_nothing(db, panel):
    expander = RecurringRuleExpander(db)

    assert await expander.expand(panel.id, date(2024, 6, 3), date(2024, 6, 16)) == []


async def test_expand_validates_range(db, monday_panel):
    expander = RecurringRuleExpander(db, max_days=30)

    with pytest.raises(ValidationError):
        await expander.expand(monday_panel.id, date(2024, 6, 16), date(2024, 6, 3))
    with pytest.raises(ValidationError):
        await expander.expand(monday_panel.id, date(2024, 6, 1), date(2024, 8, 1))


async def test_expand_unknown_panel(db):
    expander = RecurringRuleExpander(db)

    with pytest.raises(NotFoundError):
        await expander.expand(uuid.uuid4(), date(2024, 6, 3), date(2024, 6, 16))
