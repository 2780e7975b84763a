"""HTTP surface: routing, status codes and error bodies."""

import uuid

import pytest
from alembic.util.exc import CommandError
from httpx import ASGITransport, AsyncClient

from hiring_pipeline.core.dependencies import get_clock, get_db
from hiring_pipeline.main import app
from hiring_pipeline.routers import health

pytestmark = pytest.mark.db


@pytest.fixture
async def client(session_factory, clock):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


async def _create_panel(client) -> dict:
    response = await client.post(
        "/panels",
        json={
            "name": "Platform Panel",
            "description": "Platform interviewers",
            "members": [str(uuid.uuid4())],
        },
    )
    assert response.status_code == 201
    return response.json()


async def _create_workflow(client, name="Alan Turing") -> dict:
    response = await client.post(
        "/workflows",
        json={
            "application_id": str(uuid.uuid4()),
            "campaign_id": str(uuid.uuid4()),
            "candidate_name": name,
        },
    )
    assert response.status_code == 201
    return response.json()


async def _add_day(client, panel_id) -> dict:
    response = await client.post(
        f"/panels/{panel_id}/availability",
        json={
            "date": "2024-06-10",
            "time_slots": [
                {"start_time": "09:00", "end_time": "10:00"},
                {"start_time": "11:00", "end_time": "12:00"},
            ],
        },
    )
    assert response.status_code == 200
    return response.json()


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["api_ok"] is True
    assert body["db_ok"] is True
    assert body["alembic_head"] == "001_initial_schema"


async def test_health_survives_unreadable_migrations(client, monkeypatch):
    def broken_head():
        raise CommandError("Could not determine revision")

    monkeypatch.setattr(health, "_load_alembic_head", broken_head)

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["alembic_head"] is None
    assert response.json()["alembic_head_ok"] is False


async def test_panel_crud(client):
    panel = await _create_panel(client)

    fetched = await client.get(f"/panels/{panel['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["name"] == "Platform Panel"

    updated = await client.put(f"/panels/{panel['id']}", json={"is_active": False})
    assert updated.json()["is_active"] is False

    active = await client.get("/panels", params={"is_active": True})
    assert active.json() == []


async def test_availability_and_slot_query(client):
    panel = await _create_panel(client)
    body = await _add_day(client, panel["id"])
    assert [s["start_time"] for s in body["availability"][0]["time_slots"]] == ["09:00", "11:00"]

    response = await client.get(
        f"/panels/{panel['id']}/available-slots",
        params={"start_date": "2024-06-01", "end_date": "2024-06-30"},
    )

    assert response.status_code == 200
    assert [entry["date"] for entry in response.json()] == ["2024-06-10"]


async def test_invalid_slot_time_is_validation_error(client):
    panel = await _create_panel(client)

    response = await client.post(
        f"/panels/{panel['id']}/availability",
        json={"date": "2024-06-10", "time_slots": [{"start_time": "9am", "end_time": "10:00"}]},
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_unordered_slot_is_validation_error(client):
    panel = await _create_panel(client)

    response = await client.post(
        f"/panels/{panel['id']}/availability",
        json={"date": "2024-06-10", "time_slots": [{"start_time": "10:00", "end_time": "09:00"}]},
    )

    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "time_slots[0]"


async def test_recurring_rule_and_generation(client):
    panel = await _create_panel(client)
    rule = await client.post(
        f"/panels/{panel['id']}/recurring-availability",
        json={"day_of_week": 1, "time_slots": [{"start_time": "09:00", "end_time": "10:00"}]},
    )
    assert rule.status_code == 200
    assert rule.json()["recurring_rules"][0]["day_of_week"] == 1

    generated = await client.post(
        f"/panels/{panel['id']}/generate-availability",
        json={"start_date": "2024-06-03", "end_date": "2024-06-16"},
    )

    assert generated.status_code == 200
    assert generated.json()["generated_dates"] == ["2024-06-03", "2024-06-10"]


async def test_delete_availability(client):
    panel = await _create_panel(client)
    body = await _add_day(client, panel["id"])
    availability_id = body["availability"][0]["id"]

    response = await client.delete(f"/panels/{panel['id']}/availability/{availability_id}")

    assert response.status_code == 200
    assert response.json()["availability"] == []


async def test_interview_booking_flow(client):
    panel = await _create_panel(client)
    body = await _add_day(client, panel["id"])
    slot_id = body["availability"][0]["time_slots"][0]["id"]
    first = await _create_workflow(client)
    second = await _create_workflow(client, "Barbara Liskov")
    actor = str(uuid.uuid4())
    setup = {"panel_id": panel["id"], "scheduled_date": "2024-06-10", "time_slot_id": slot_id}

    booked = await client.put(f"/workflows/{first['id']}/interview1-setup", json=setup, headers={"X-User-ID": actor})
    assert booked.status_code == 200
    assert booked.json()["current_stage"] == "Interview 1"
    assert booked.json()["stages"]["interview1_setup"]["assigned_by"] == actor

    conflict = await client.put(f"/workflows/{second['id']}/interview1-setup", json=setup)
    assert conflict.status_code == 409
    assert conflict.json()["error"]["code"] == "SLOT_CONFLICT"

    still_waiting = await client.get(f"/workflows/{second['id']}")
    assert still_waiting.json()["current_stage"] == "Interview 1 - Set up"


async def test_generic_transition_and_wrong_stage(client):
    workflow = await _create_workflow(client)

    wrong = await client.post(
        f"/workflows/{workflow['id']}/transitions/record_interview_result",
        json={"result": "Select", "remarks": "fine"},
    )
    assert wrong.status_code == 409
    assert wrong.json()["error"]["code"] == "STATE_CONFLICT"

    unknown = await client.post(f"/workflows/{workflow['id']}/transitions/fast_track", json={})
    assert unknown.status_code == 422


async def test_candidate_details_and_grouping(client):
    workflow = await _create_workflow(client)

    response = await client.put(
        f"/workflows/{workflow['id']}/candidate-details",
        json={"expected_salary": 90000, "notice_period": "2 weeks"},
    )
    assert response.status_code == 200
    assert response.json()["candidate_details"]["notice_period"] == "2 weeks"

    grouped = await client.get("/workflows", params={"group_by": "date"})
    assert [w["id"] for w in grouped.json()["No Date"]] == [workflow["id"]]

    flat = await client.get("/workflows")
    assert [w["id"] for w in flat.json()] == [workflow["id"]]


async def test_unknown_workflow_is_not_found(client):
    response = await client.get(f"/workflows/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


async def test_duplicate_application_conflicts(client):
    payload = {
        "application_id": str(uuid.uuid4()),
        "campaign_id": str(uuid.uuid4()),
        "candidate_name": "Edsger Dijkstra",
    }
    assert (await client.post("/workflows", json=payload)).status_code == 201

    again = await client.post("/workflows", json=payload)

    assert again.status_code == 409


async def test_bad_actor_header(client):
    workflow = await _create_workflow(client)

    response = await client.put(
        f"/workflows/{workflow['id']}/onboarding",
        json={"complete": True},
        headers={"X-User-ID": "not-a-uuid"},
    )

    assert response.status_code == 422
    assert response.json() == {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "X-User-ID header must be a UUID",
            "details": [{"field": "X-User-ID", "message": "must be a UUID"}],
        }
    }


async def test_delete_panel(client):
    panel = await _create_panel(client)
    await _add_day(client, panel["id"])

    deleted = await client.delete(f"/panels/{panel['id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Panel deleted successfully"}

    assert (await client.get(f"/panels/{panel['id']}")).status_code == 404
    again = await client.delete(f"/panels/{panel['id']}")
    assert again.status_code == 404
    assert again.json()["error"]["code"] == "NOT_FOUND"
