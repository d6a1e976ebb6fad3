import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from carpark.core.exceptions import Conflict, InvalidInput, NoSpotsAvailable, NotFound
from carpark.main import app
from carpark.models.booking import BookingStatus, SpotReservation
from carpark.models.lot import Lot
from carpark.services.reservations import SpotReservationStore

JUNE_1 = datetime(2024, 6, 1, tzinfo=timezone.utc)
JUNE_3 = datetime(2024, 6, 3, tzinfo=timezone.utc)


class UnreachableSession:
    """A session whose database went away."""

    def query(self, *entities):
        raise OperationalError("SELECT", {}, Exception("server closed the connection unexpectedly"))

    def rollback(self):
        pass


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def single_space_lot(db):
    lot = Lot(name="Overflow", slug="overflow", total_spaces=1, is_active=True)
    db.add(lot)
    db.commit()
    return lot


@pytest.fixture
def store(db, clock):
    return SpotReservationStore(db, ttl=timedelta(minutes=10), clock=clock)


def test_second_session_is_refused_on_full_lot(store, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    with pytest.raises(NoSpotsAvailable):
        store.reserve("session-b", single_space_lot.id, JUNE_1 + timedelta(days=1), JUNE_3 + timedelta(days=1))


def test_release_frees_capacity(store, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    assert store.release("session-a") is True
    held = store.reserve("session-b", single_space_lot.id, JUNE_1, JUNE_3)
    assert held.reservation.session_id == "session-b"


def test_release_is_idempotent(store):
    assert store.release("never-held") is False


def test_expired_hold_stops_counting(store, clock, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    with pytest.raises(NoSpotsAvailable):
        store.reserve("session-b", single_space_lot.id, JUNE_1, JUNE_3)

    clock.advance(minutes=11)
    held = store.reserve("session-b", single_space_lot.id, JUNE_1, JUNE_3)
    assert held.remaining_seconds == 600
    assert store.get("session-a") is None


def test_non_overlapping_ranges_share_a_space(store, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    # Touching ranges do not overlap
    store.reserve("session-b", single_space_lot.id, JUNE_3, JUNE_3 + timedelta(days=2))


def test_same_session_replaces_its_own_hold(store, db, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3 + timedelta(days=1))
    assert db.query(SpotReservation).count() == 1


def test_get_reports_remaining_seconds(store, clock, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    clock.advance(minutes=4)
    held = store.get("session-a")
    assert held is not None
    assert held.remaining_seconds == 360


def test_extend_refreshes_expiry(store, clock, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3, booking_data={"step": 2})
    clock.advance(minutes=8)
    held = store.extend("session-a")
    assert held.remaining_seconds == 600
    assert held.reservation.booking_data == {"step": 2}


def test_extend_rechecks_availability(store, clock, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    clock.advance(minutes=11)
    store.reserve("session-b", single_space_lot.id, JUNE_1, JUNE_3)
    with pytest.raises(NoSpotsAvailable):
        store.extend("session-a")


def test_extend_unknown_session(store):
    with pytest.raises(NotFound):
        store.extend("missing-session")


def test_end_must_follow_start(store, single_space_lot):
    with pytest.raises(InvalidInput):
        store.reserve("session-a", single_space_lot.id, JUNE_3, JUNE_1)


def test_pending_and_confirmed_bookings_hold_capacity(store, db, lot, make_booking, clock):
    lot.total_spaces = 2
    db.commit()
    pending = make_booking(status=BookingStatus.PENDING)
    make_booking(status=BookingStatus.CONFIRMED)
    start = pending.drop_off_time
    with pytest.raises(NoSpotsAvailable):
        store.reserve("session-a", lot.id, start, start + timedelta(days=1))


def test_cancelled_bookings_do_not_hold_capacity(store, db, lot, make_booking):
    lot.total_spaces = 1
    db.commit()
    booking = make_booking(status=BookingStatus.CANCELLED)
    store.reserve("session-a", lot.id, booking.drop_off_time, booking.pick_up_time)


def test_purge_expired(store, clock, db, single_space_lot):
    store.reserve("session-a", single_space_lot.id, JUNE_1, JUNE_3)
    store.reserve("session-b", single_space_lot.id, JUNE_3, JUNE_3 + timedelta(days=1))
    clock.advance(minutes=11)
    assert store.purge_expired() == 2
    assert db.query(SpotReservation).count() == 0


def test_signed_in_hold_belongs_to_its_account(store, single_space_lot, customer, operator):
    store.reserve("anon-session", single_space_lot.id, JUNE_1, JUNE_3)
    store.reserve("customer-session", single_space_lot.id, JUNE_3, JUNE_3 + timedelta(days=2), user_id=customer.id)

    assert store.owned_session("anon-session", None) == "anon-session"
    assert store.owned_session("customer-session", customer.id) == "customer-session"
    assert store.owned_session("customer-session", operator.id) is None
    assert store.owned_session("customer-session", None) is None
    assert store.owned_session("missing-session", customer.id) is None
    assert store.owned_session(None, customer.id) is None


def test_store_failure_is_not_reported_as_full():
    store = SpotReservationStore(UnreachableSession())
    with pytest.raises(OperationalError) as excinfo:
        store.reserve("session-a", uuid.uuid4(), JUNE_1, JUNE_3)
    assert not isinstance(excinfo.value, Conflict)


def test_reserve_unknown_lot(store):
    with pytest.raises(NotFound):
        store.reserve("session-a", uuid.uuid4(), JUNE_1, JUNE_3)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------


def _hold(client, session_id, lot, start, end):
    return client.post(
        "/api/v1/reservations/",
        json={
            "session_id": session_id,
            "lot_id": str(lot.id),
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "booking_data": {"plate": "AB123"},
        },
    )


def test_reservation_endpoints(client, single_space_lot):
    response = _hold(client, "checkout-aaaa", single_space_lot, JUNE_1, JUNE_3)
    assert response.status_code == 201
    assert response.json()["remaining_seconds"] > 0
    assert response.json()["booking_data"] == {"plate": "AB123"}

    response = _hold(client, "checkout-bbbb", single_space_lot, JUNE_1, JUNE_3)
    assert response.status_code == 409
    assert response.json()["error"] == "no_spots_available"

    status = client.get("/api/v1/reservations/checkout-aaaa").json()
    assert status["active"] is True
    assert status["reservation"]["session_id"] == "checkout-aaaa"

    assert client.post("/api/v1/reservations/checkout-aaaa/extend").status_code == 200

    assert client.delete("/api/v1/reservations/checkout-aaaa").json() == {"released": True}
    assert client.get("/api/v1/reservations/checkout-aaaa").json()["active"] is False
    assert _hold(client, "checkout-bbbb", single_space_lot, JUNE_1, JUNE_3).status_code == 201


def test_reservation_rejects_short_session_id(client, single_space_lot):
    assert _hold(client, "short", single_space_lot, JUNE_1, JUNE_3).status_code == 422


def test_reservation_endpoint_store_failure_is_a_server_error(client, single_space_lot, monkeypatch):
    def unreachable(self, lot_id):
        raise OperationalError("SELECT", {}, Exception("server closed the connection unexpectedly"))

    monkeypatch.setattr(SpotReservationStore, "lock_lot", unreachable)
    failing_client = TestClient(app, raise_server_exceptions=False)

    response = failing_client.post(
        "/api/v1/reservations/",
        json={
            "session_id": "checkout-aaaa",
            "lot_id": str(single_space_lot.id),
            "start_date": JUNE_1.isoformat(),
            "end_date": JUNE_3.isoformat(),
        },
    )
    assert response.status_code == 500
    assert "no_spots_available" not in response.text
