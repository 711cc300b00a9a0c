import pytest
from fastapi.testclient import TestClient

from frontdesk.database.mongo_store import get_store
from frontdesk.main import app
from frontdesk.utils.clock import get_clock

CHECK_IN = {
    "guest_name": "ravi kumar",
    "phone_number": "9876543210",
    "id_number": "abcd1234",
    "number_of_guests": 2,
    "ac_type": "AC",
    "rent": 1000,
    "initial_payment": 400,
    "payment_mode": "cash",
}


@pytest.fixture
def client(store, clock):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_clock] = lambda: clock
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json() == {"status": "healthy"}


class TestRooms:

    def test_create_and_list(self, client):
        response = client.post("/api/rooms/", json={"room_number": 201, "floor": 2, "type": "non-ac"})
        assert response.status_code == 201
        room = response.json()
        assert room["status"] == "available"
        assert room["_id"]

        rooms = client.get("/api/rooms/", params={"floor": 2}).json()
        assert [r["room_number"] for r in rooms] == [201]

    def test_invalid_room_number(self, client):
        response = client.post("/api/rooms/", json={"room_number": 12, "floor": 1})
        assert response.status_code == 422

    def test_duplicate_room_is_400(self, client, room):
        response = client.post("/api/rooms/", json={"room_number": 101, "floor": 1})
        assert response.status_code == 400
        assert response.json()["room_number"] == 101

    def test_missing_room_is_404(self, client):
        assert client.get("/api/rooms/unknown").status_code == 404

    def test_maintenance_toggle(self, client, room):
        assert client.post(f"/api/rooms/{room['_id']}/maintenance").json()["status"] == "maintenance"
        assert client.delete(f"/api/rooms/{room['_id']}/maintenance").json()["status"] == "available"

    def test_summary(self, client, store, room):
        store.seed_room(102, status="cleaning")
        summary = client.get("/api/rooms/summary").json()
        assert summary["rooms"]["total"] == 2
        assert summary["rooms"]["available"] == 1
        assert summary["rooms"]["cleaning"] == 1
        assert summary["houses"] == {"total": 4, "booked": 0, "available": 4}


class TestCheckinFlow:

    def test_full_stay(self, client, store, room):
        response = client.post("/api/checkins/", json={**CHECK_IN, "room_id": room["_id"]})
        assert response.status_code == 201
        booking_id = response.json()["_id"]
        assert response.json()["checked_in_at"].endswith("+05:30")

        ledger = client.get(f"/api/checkins/{booking_id}/ledger").json()
        assert ledger["summary"]["pending"] == 600
        assert ledger["stay"]["urgency"] == "normal"

        refused = client.post(f"/api/checkins/{booking_id}/checkout")
        assert refused.status_code == 409
        assert refused.json()["pending"] == 600
        assert refused.json()["booking_id"] == booking_id

        paid = client.post(f"/api/checkins/{booking_id}/payments", json={"amount": 600, "payment_mode": "gpay"})
        assert paid.json()["summary"]["pending"] == 0

        done = client.post(f"/api/checkins/{booking_id}/checkout")
        assert done.status_code == 200
        assert done.json()["is_checked_out"] is True
        assert store.rooms[room["_id"]]["status"] == "cleaning"

        history = client.get(f"/api/rooms/{room['_id']}/history").json()
        assert len(history) == 1
        assert history[0]["ledger"]["total_receipts"] == 1000

    def test_extend_moves_validity(self, client, room):
        booking_id = client.post("/api/checkins/", json={**CHECK_IN, "room_id": room["_id"]}).json()["_id"]
        ledger = client.post(f"/api/checkins/{booking_id}/extend", json={"amount": 800}).json()
        assert ledger["summary"]["current_rent"] == 1800
        assert ledger["stay"]["valid_until"] == "2024-03-12T12:00:00+05:30"

    def test_zero_payment_is_400(self, client, room):
        booking_id = client.post("/api/checkins/", json={**CHECK_IN, "room_id": room["_id"]}).json()["_id"]
        response = client.post(f"/api/checkins/{booking_id}/payments", json={"amount": 0, "payment_mode": "cash"})
        assert response.status_code == 400

    def test_nan_payment_is_rejected_and_checkout_still_blocked(self, client, store, room):
        booking_id = client.post("/api/checkins/", json={**CHECK_IN, "initial_payment": 0, "room_id": room["_id"]}).json()["_id"]
        response = client.post(
            f"/api/checkins/{booking_id}/payments",
            content='{"amount": NaN, "payment_mode": "cash"}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422
        assert len(store.entries_for(booking_id)) == 1

        refused = client.post(f"/api/checkins/{booking_id}/checkout")
        assert refused.status_code == 409
        assert refused.json()["pending"] == 1000
        assert store.rooms[room["_id"]]["status"] == "occupied"

    def test_infinite_extension_is_422(self, client, store, room):
        booking_id = client.post("/api/checkins/", json={**CHECK_IN, "room_id": room["_id"]}).json()["_id"]
        response = client.post(
            f"/api/checkins/{booking_id}/extend",
            content='{"amount": Infinity}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422
        assert client.get(f"/api/checkins/{booking_id}/ledger").json()["summary"]["pending"] == 600

    def test_active_stays(self, client, room):
        client.post("/api/checkins/", json={**CHECK_IN, "room_id": room["_id"]})
        active = client.get("/api/checkins/active").json()
        assert len(active) == 1
        assert active[0]["ledger"]["pending"] == 600

    def test_unknown_entry_kind_is_422(self, client, store, room):
        booking_id = client.post("/api/checkins/", json={**CHECK_IN, "room_id": room["_id"]}).json()["_id"]
        store.entries.append({"_id": "bad1", "booking_id": booking_id, "kind": "voucher", "amount": 10, "timestamp": store.entries[0]["timestamp"]})
        response = client.get(f"/api/checkins/{booking_id}/ledger")
        assert response.status_code == 422
        assert response.json()["entry_id"] == "bad1"


def test_house_flow(client):
    houses = client.get("/api/houses/").json()
    assert {h["status"] for h in houses} == {"available"}

    response = client.post("/api/houses/guest-house/check-in", json={**CHECK_IN, "stay_type": "month", "rent": 30000})
    assert response.status_code == 201
    booking_id = response.json()["_id"]
    assert response.json()["days_of_stay"] == 30

    fee = client.post(f"/api/houses/bookings/{booking_id}/extra-fees", json={"description": "cleaning", "amount": 500})
    assert fee.json()["summary"]["total_charges"] == 30500

    board = {h["id"]: h for h in client.get("/api/houses/").json()}
    assert board["guest-house"]["status"] == "booked"
    assert board["guest-house"]["booking"]["ledger"]["pending"] == 30100

    assert client.get("/api/houses/nowhere/history").status_code == 404


def test_advance_booking_flow(client, store):
    rooms = [store.seed_room(101), store.seed_room(102)]
    response = client.post("/api/advance-bookings/", json={
        "name": "meera nair",
        "mobile": "9000000001",
        "id_number": "xyz987",
        "date_of_booking": "2024-03-15",
        "room_type": "AC",
        "number_of_rooms": 2,
        "price_per_room": 1500,
        "advance_amount": 1000,
    })
    assert response.status_code == 201
    advance_id = response.json()["_id"]

    available = client.get(f"/api/advance-bookings/{advance_id}/available-rooms").json()
    assert len(available) == 2

    listing = client.get("/api/advance-bookings/", params={"search": "meera"}).json()
    assert [a["_id"] for a in listing["pending"]] == [advance_id]

    completed = client.post(f"/api/advance-bookings/{advance_id}/complete", json={"room_ids": [r["_id"] for r in rooms]})
    assert completed.json()["status"] == "completed"

    again = client.post(f"/api/advance-bookings/{advance_id}/cancel", json={"refund_amount": 0})
    assert again.status_code == 409

    listing = client.get("/api/advance-bookings/").json()
    assert listing["pending"] == []
    assert listing["history"][0]["_id"] == advance_id


def test_payments_desk(client, room):
    client.post("/api/checkins/", json={**CHECK_IN, "room_id": room["_id"]})

    daily = client.get("/api/payments/daily", params={"date": "2024-03-10"}).json()
    assert daily["cash"] == 400

    assert client.get("/api/payments/pending-collection").json()["cash"] == 400
    assert client.post("/api/payments/collect").status_code == 201
    assert client.post("/api/payments/collect").status_code == 409
    assert len(client.get("/api/payments/collection-logs").json()) == 1


def test_store_failure_is_503(client, store):
    store.fail_on.add("list_rooms")
    response = client.get("/api/rooms/")
    assert response.status_code == 503
    assert isinstance(response.json()["detail"], str)


def test_unconnected_database_is_503(store, clock):
    app.dependency_overrides[get_clock] = lambda: clock
    try:
        response = TestClient(app).get("/api/rooms/summary")
    finally:
        app.dependency_overrides.clear()
    assert response.status_code == 503
    assert response.json()["detail"] == "Database not connected"
