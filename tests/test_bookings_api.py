import uuid
from datetime import timedelta

import pytest

from carpark.models.booking import Booking, BookingStatus, SpotReservation
from carpark.models.user import User
from carpark.utils.clock import utcnow


@pytest.fixture
def stay():
    drop_off = (utcnow() + timedelta(days=3)).replace(microsecond=0)
    return drop_off, drop_off + timedelta(days=7, hours=3)


def _payload(stay, **overrides):
    drop_off, pick_up = stay
    payload = {
        "license_plate": "ab 123",
        "vehicle_type_code": "medium",
        "drop_off_time": drop_off.isoformat(),
        "pick_up_time": pick_up.isoformat(),
        "departure_flight_number": "fi204",
        "guest_name": "Jón Jónsson",
        "guest_email": "Jon@Example.com",
        "guest_phone": "+3545551234",
        "locale": "en",
    }
    payload.update(overrides)
    return payload


def test_guest_booking_is_priced_on_the_server(client, db, lot, pricing, wash, stay):
    response = client.post(
        "/api/v1/bookings/",
        json=_payload(stay, addon_service_ids=[str(wash.id)], total_price=1),
    )
    assert response.status_code == 201, response.text
    body = response.json()

    # 8 days x 600, 10% weekly discount, plus the medium wash
    assert body["status"] == "PENDING"
    assert body["total_days"] == 8
    assert body["base_total"] == 4800
    assert body["discount_amount"] == 480
    assert body["addons_total"] == 13000
    assert body["total_price"] == 4320 + 13000
    assert body["reference"].startswith("KEF-")
    assert body["vehicle"]["license_plate"] == "AB123"
    assert body["departure_flight_number"] == "FI204"
    assert [a["service"]["code"] for a in body["addons"]] == ["exterior_wash"]

    guest = db.query(User).filter(User.email == "jon@example.com").one()
    assert guest.password_hash is None
    assert guest.locale == "en"


def test_booking_consumes_the_checkout_hold(client, db, lot, pricing, stay):
    lot.total_spaces = 1
    db.commit()
    drop_off, pick_up = stay

    hold = client.post(
        "/api/v1/reservations/",
        json={
            "session_id": "checkout-session-1",
            "start_date": drop_off.isoformat(),
            "end_date": pick_up.isoformat(),
        },
    )
    assert hold.status_code == 201

    # Someone else's booking is blocked by the hold
    blocked = client.post("/api/v1/bookings/", json=_payload(stay, guest_email="other@example.com"))
    assert blocked.status_code == 409
    assert blocked.json()["error"] == "no_spots_available"

    # The holder's own booking goes through and the hold is gone
    response = client.post("/api/v1/bookings/", json=_payload(stay, session_id="checkout-session-1"))
    assert response.status_code == 201
    db.expire_all()
    assert db.query(SpotReservation).count() == 0

    # The new PENDING booking now takes the only space
    again = client.post("/api/v1/bookings/", json=_payload(stay, license_plate="XY999"))
    assert again.status_code == 409


def test_booking_cannot_use_another_accounts_hold(client, db, lot, pricing, customer_headers, stay):
    lot.total_spaces = 1
    db.commit()
    drop_off, pick_up = stay

    hold = client.post(
        "/api/v1/reservations/",
        headers=customer_headers,
        json={
            "session_id": "customer-checkout-1",
            "start_date": drop_off.isoformat(),
            "end_date": pick_up.isoformat(),
        },
    )
    assert hold.status_code == 201

    # A guest presenting the customer's session id gets neither the space nor the hold
    taken = client.post(
        "/api/v1/bookings/",
        json=_payload(stay, session_id="customer-checkout-1", guest_email="other@example.com"),
    )
    assert taken.status_code == 409
    assert taken.json()["error"] == "no_spots_available"
    db.expire_all()
    assert db.query(SpotReservation).filter(SpotReservation.session_id == "customer-checkout-1").count() == 1

    own = client.post(
        "/api/v1/bookings/",
        headers=customer_headers,
        json=_payload(stay, session_id="customer-checkout-1", guest_email=None, guest_name=None),
    )
    assert own.status_code == 201
    db.expire_all()
    assert db.query(SpotReservation).count() == 0


def test_drop_off_in_the_past_is_rejected(client, lot, pricing):
    past = utcnow() - timedelta(hours=1)
    response = client.post("/api/v1/bookings/", json=_payload((past, past + timedelta(days=2))))
    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_pick_up_before_drop_off_is_rejected(client, lot, pricing, stay):
    drop_off, _ = stay
    response = client.post(
        "/api/v1/bookings/",
        json=_payload(stay, pick_up_time=(drop_off - timedelta(hours=1)).isoformat()),
    )
    assert response.status_code == 422


def test_guest_needs_an_email(client, lot, pricing, stay):
    response = client.post("/api/v1/bookings/", json=_payload(stay, guest_email=None))
    assert response.status_code == 422


def test_invalid_plate_is_rejected(client, lot, pricing, stay):
    response = client.post("/api/v1/bookings/", json=_payload(stay, license_plate="1234567"))
    assert response.status_code == 422


def test_unpriced_addon_is_rejected(client, lot, pricing, stay):
    response = client.post("/api/v1/bookings/", json=_payload(stay, addon_service_ids=[str(uuid.uuid4())]))
    assert response.status_code == 422


def test_signed_in_customer_owns_the_booking(client, db, lot, pricing, customer, customer_headers, stay):
    response = client.post(
        "/api/v1/bookings/",
        headers=customer_headers,
        json=_payload(stay, guest_email=None, guest_name=None),
    )
    assert response.status_code == 201
    booking = db.query(Booking).one()
    assert booking.user_id == customer.id
    assert booking.guest_email is None

    mine = client.get("/api/v1/me/bookings", headers=customer_headers).json()
    assert mine["total"] == 1
    assert mine["data"][0]["reference"] == response.json()["reference"]


def test_lookup_requires_matching_email(client, lot, pricing, stay):
    reference = client.post("/api/v1/bookings/", json=_payload(stay)).json()["reference"]

    assert client.get(f"/api/v1/bookings/{reference}").status_code == 404
    assert client.get(f"/api/v1/bookings/{reference}", params={"email": "wrong@example.com"}).status_code == 404

    found = client.get(f"/api/v1/bookings/{reference.lower()}", params={"email": "jon@example.com"})
    assert found.status_code == 200
    assert found.json()["reference"] == reference


def test_guest_cancels_before_drop_off(client, lot, pricing, stay):
    reference = client.post("/api/v1/bookings/", json=_payload(stay)).json()["reference"]

    response = client.post(f"/api/v1/bookings/{reference}/cancel", params={"email": "jon@example.com"})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "CANCELLED"
    assert body["cancelled_at"] is not None
    # SMTP is not configured in tests
    assert body["email_sent"] is False

    again = client.post(f"/api/v1/bookings/{reference}/cancel", params={"email": "jon@example.com"})
    assert again.status_code == 409
    assert again.json()["error"] == "cannot_cancel"


def test_started_booking_cannot_be_cancelled(client, make_booking, customer_headers):
    booking = make_booking(status=BookingStatus.CONFIRMED, starts_in=timedelta(hours=-2))
    response = client.post(f"/api/v1/bookings/{booking.reference}/cancel", headers=customer_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "cannot_cancel"


def test_resend_confirmation_without_smtp(client, make_booking, customer_headers):
    booking = make_booking()
    response = client.post(f"/api/v1/bookings/{booking.reference}/send-confirmation", headers=customer_headers)
    assert response.status_code == 200
    assert response.json() == {"email_sent": False}
