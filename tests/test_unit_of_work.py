"""Transaction scope: storage failures roll back and surface as PersistenceError."""

import logging
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from hiring_pipeline.errors import PersistenceError
from hiring_pipeline.repositories.panel_repository import PanelRepository
from hiring_pipeline.services.slot_store import SlotStore
from tests.conftest import slots

pytestmark = pytest.mark.db


async def test_storage_failure_rolls_back_and_hides_details(db, panel, session_factory, monkeypatch, caplog):
    add_availability = PanelRepository.add_availability

    async def flush_then_fail(self, *args, **kwargs):
        await add_availability(self, *args, **kwargs)
        raise OperationalError("INSERT INTO panel_time_slot", {}, Exception("disk I/O error"))

    monkeypatch.setattr(PanelRepository, "add_availability", flush_then_fail)
    panel_id = panel.id

    with caplog.at_level(logging.ERROR, logger="hiring_pipeline.db.unit_of_work"):
        with pytest.raises(PersistenceError) as exc_info:
            await SlotStore(db).upsert_availability(panel_id, date(2024, 6, 10), slots(("09:00", "10:00")))

    error = exc_info.value
    assert error.status_code == 500
    assert error.payload == {
        "error": {"code": "PERSISTENCE_ERROR", "message": "The operation could not be saved"}
    }
    assert "disk I/O error" not in str(error.payload)
    assert "Storage failure during upsert_availability" in caplog.text
    assert "disk I/O error" in caplog.text

    async with session_factory() as session:
        assert await SlotStore(session).list_availability(panel_id) == []
