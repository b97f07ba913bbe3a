from datetime import date, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from backend.app.core.locks import LocalDateLock
from backend.app.main import app
from backend.app.routers.deps import (
    get_assignment_lock,
    get_config_store,
    get_reservation_store,
    get_table_store,
)
from backend.app.scheduling.models import OperatingHours, RestaurantConfig
from backend.tests.fakes import InMemoryConfigStore, make_reservation, make_table

BASE = "/api/v1/restaurants/rest-1"


@pytest.fixture
def config_store():
    return InMemoryConfigStore()


@pytest.fixture
async def client(reservation_store, table_store, config_store):
    lock = LocalDateLock()
    app.dependency_overrides[get_reservation_store] = lambda: reservation_store
    app.dependency_overrides[get_table_store] = lambda: table_store
    app.dependency_overrides[get_config_store] = lambda: config_store
    app.dependency_overrides[get_assignment_lock] = lambda: lock

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


async def test_healthz(client):
    response = await client.get("/api/v1/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}


async def test_time_slots_and_check(client, reservation_store):
    reservation_store.rows["a"] = make_reservation("a", "20:00", 48)

    slots = await client.get(f"{BASE}/availability/slots", params={"date": "2025-11-05"})
    fits = await client.post(
        f"{BASE}/availability/check",
        json={"date": "2025-11-05", "time": "20:00", "guests": 2},
    )
    full = await client.post(
        f"{BASE}/availability/check",
        json={"date": "2025-11-05", "time": "20:00", "guests": 3},
    )

    assert slots.status_code == 200, slots.text
    by_time = {s["time"]: s for s in slots.json()}
    assert by_time["20:00"]["current_reservations"] == 48
    assert fits.json()["available"] is True
    assert full.json()["available"] is False


async def test_check_rejects_malformed_payload(client):
    response = await client.post(
        f"{BASE}/availability/check",
        json={"date": "2025-11-05", "time": "8pm", "guests": 0},
    )

    assert response.status_code == 422


async def test_auto_assign_and_reoptimize(client, reservation_store):
    reservation_store.rows["big"] = make_reservation("big", "20:00", 8)
    reservation_store.rows["pair"] = make_reservation("pair", "20:00", 2)
    reservation_store.rows["huge"] = make_reservation("huge", "20:00", 12)

    response = await client.post(f"{BASE}/assignments/auto", params={"date": "2025-11-05"})

    assert response.status_code == 200, response.text
    body = response.json()
    assert {a["reservation_id"]: a["table_id"] for a in body["assignments"]} == {
        "big": "t5",
        "pair": "t2",
    }
    assert body["unassigned"] == ["huge"]

    again = await client.post(f"{BASE}/assignments/reoptimize", params={"date": "2025-11-05"})
    assert again.json() == body


async def test_manual_assignment_conflict_and_unassign(client, reservation_store):
    reservation_store.rows["a"] = make_reservation("a", "20:00", 4, assigned_table_id="t1")
    reservation_store.rows["b"] = make_reservation("b", "21:00", 4)

    rejected = await client.put(f"{BASE}/reservations/b/table", json={"table_id": "t1"})
    accepted = await client.put(f"{BASE}/reservations/b/table", json={"table_id": "t4"})
    released = await client.delete(f"{BASE}/reservations/b/table")

    assert rejected.status_code == 409
    assert rejected.json()["detail"]["conflicts"] == [
        "Time conflict with reservation a at 20:00"
    ]
    assert accepted.status_code == 200
    assert accepted.json()["valid"] is True
    assert released.status_code == 200
    assert released.json()["assigned_table_id"] is None
    assert reservation_store.table_of("b") is None


async def test_unknown_reservation_is_404(client):
    response = await client.delete(f"{BASE}/reservations/missing/table")

    assert response.status_code == 404


async def test_validate_and_alternative(client, reservation_store):
    reservation_store.rows["r"] = make_reservation("r", "20:00", 2)

    check = await client.post(f"{BASE}/reservations/r/validate-table", json={"table_id": "t5"})
    alternative = await client.get(
        f"{BASE}/reservations/r/alternative", params={"exclude_table_id": "t2"}
    )

    assert check.json() == {
        "valid": True,
        "conflicts": [],
        "warnings": ["Table is considerably larger than the party"],
    }
    assert alternative.json()["table_id"] == "t1"
    assert reservation_store.table_of("r") is None


async def test_table_crud(client, table_store):
    created = await client.post(
        f"{BASE}/tables",
        json={"id": "t6", "number": "6", "capacity": 2, "zone": "bar"},
    )
    duplicate_number = await client.post(
        f"{BASE}/tables", json={"number": "6", "capacity": 2}
    )
    too_big = await client.put(f"{BASE}/tables/t6", json={"number": "6", "capacity": 30})
    copied = await client.post(f"{BASE}/tables/t1/duplicate")
    deleted = await client.delete(f"{BASE}/tables/t6")
    missing = await client.delete(f"{BASE}/tables/t6")

    assert created.status_code == 201, created.text
    assert duplicate_number.status_code == 422
    assert duplicate_number.json()["detail"]["errors"] == ["Table number 6 is already in use"]
    assert too_big.status_code == 422
    assert copied.status_code == 201
    assert copied.json()["number"] == "7"
    assert deleted.status_code == 204
    assert missing.status_code == 404
    assert "t6" not in table_store.tables


async def test_tables_status(client, reservation_store):
    reservation_store.rows["a"] = make_reservation("a", "20:00", 2, assigned_table_id="t2")

    response = await client.get(
        f"{BASE}/tables/status", params={"date": "2025-11-05", "time": "20:30"}
    )

    assert response.status_code == 200
    statuses = {s["table"]["id"]: s["status"] for s in response.json()}
    assert statuses["t2"] == "reserved"
    assert statuses["t1"] == "free"


async def test_assignment_needs_the_lock_backend(client):
    app.dependency_overrides.pop(get_assignment_lock)

    response = await client.post(f"{BASE}/assignments/auto", params={"date": "2025-11-05"})

    assert response.status_code == 503
    assert response.json()["detail"] == "Redis unavailable"


async def test_release_and_checks_work_without_the_lock_backend(client, reservation_store):
    app.dependency_overrides.pop(get_assignment_lock)
    reservation_store.rows["r"] = make_reservation("r", "20:00", 2, assigned_table_id="t2")

    check = await client.post(f"{BASE}/reservations/r/validate-table", json={"table_id": "t1"})
    status = await client.get(f"{BASE}/tables/status", params={"date": "2025-11-05"})
    released = await client.delete(f"{BASE}/reservations/r/table")

    assert check.status_code == 200
    assert status.status_code == 200
    assert released.status_code == 200
    assert reservation_store.table_of("r") is None


async def test_configuration_is_validated_on_save(client, config_store):
    current = (await client.get(f"{BASE}/config")).json()

    rejected = await client.put(
        f"{BASE}/config", json={**current, "time_slot_duration": 10}
    )
    accepted = await client.put(
        f"{BASE}/config", json={**current, "time_slot_duration": 60}
    )

    assert rejected.status_code == 422
    assert rejected.json()["detail"]["errors"] == [
        "Slot duration must be between 15 and 120 minutes"
    ]
    assert accepted.status_code == 200
    assert config_store.config.time_slot_duration == 60


async def test_malformed_stored_hours_answer_422(client, config_store):
    week = [OperatingHours() for _ in range(7)]
    week[2] = OperatingHours(start="12h", end="23:00")
    config_store.config = RestaurantConfig(operating_hours=week)

    response = await client.get(f"{BASE}/availability/slots", params={"date": "2025-11-05"})

    assert response.status_code == 422
    assert response.json()["detail"]["errors"] == ["Operating hours for day 2 are malformed"]


async def test_bookable_date(client):
    tomorrow = date.today() + timedelta(days=1)
    far = date.today() + timedelta(days=400)

    soon = await client.get(f"{BASE}/availability/bookable", params={"date": tomorrow.isoformat()})
    later = await client.get(f"{BASE}/availability/bookable", params={"date": far.isoformat()})

    assert soon.json() == {"date": tomorrow.isoformat(), "bookable": True}
    assert later.json()["bookable"] is False


async def test_last_table_cannot_be_deleted(client, table_store):
    table_store.tables = {"t1": make_table("t1", 4)}

    response = await client.delete(f"{BASE}/tables/t1")

    assert response.status_code == 422
    assert response.json()["detail"]["errors"] == ["Layout must contain at least one table"]
    assert "t1" in table_store.tables
