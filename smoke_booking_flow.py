import requests
import uuid
from datetime import datetime, timedelta, timezone

BASE_URL = "http://127.0.0.1:8000/api/v1"
TIMEOUT = 10


def smoke_booking_flow():
    # 1. Lots and prices
    response = requests.get(f"{BASE_URL}/lots/", timeout=TIMEOUT)
    response.raise_for_status()
    lots = response.json()
    if not lots:
        print("No lots. Run seed_reference_data.py first.")
        return
    lot = lots[0]
    print(f"Lot {lot['name']}: {lot['available_spaces']}/{lot['total_spaces']} free")

    drop_off = datetime.now(timezone.utc) + timedelta(days=3)
    pick_up = drop_off + timedelta(days=8, hours=2)
    quote = requests.post(
        f"{BASE_URL}/pricing/quote",
        json={
            "lot_id": lot["id"],
            "vehicle_type_code": "medium",
            "drop_off_time": drop_off.isoformat(),
            "pick_up_time": pick_up.isoformat(),
        },
        timeout=TIMEOUT,
    )
    print(f"Quote: {quote.status_code} {quote.text}")

    # 2. Hold a spot for the checkout session
    session_id = uuid.uuid4().hex
    hold = requests.post(
        f"{BASE_URL}/reservations/",
        json={
            "session_id": session_id,
            "lot_id": lot["id"],
            "start_date": drop_off.isoformat(),
            "end_date": pick_up.isoformat(),
        },
        timeout=TIMEOUT,
    )
    print(f"Hold: {hold.status_code} {hold.text}")
    if hold.status_code != 201:
        return

    # 3. Guest booking consumes the hold
    booking = requests.post(
        f"{BASE_URL}/bookings/",
        json={
            "license_plate": "AB123",
            "vehicle_type_code": "medium",
            "lot_id": lot["id"],
            "session_id": session_id,
            "drop_off_time": drop_off.isoformat(),
            "pick_up_time": pick_up.isoformat(),
            "guest_name": "Smoke Test",
            "guest_email": "smoke@example.com",
        },
        timeout=TIMEOUT,
    )
    print(f"Booking: {booking.status_code} {booking.text}")
    if booking.status_code != 201:
        return
    reference = booking.json()["reference"]

    released = requests.get(f"{BASE_URL}/reservations/{session_id}", timeout=TIMEOUT)
    print(f"Hold after booking: {released.json()}")

    # 4. Cancel it again
    cancel = requests.post(
        f"{BASE_URL}/bookings/{reference}/cancel",
        params={"email": "smoke@example.com"},
        timeout=TIMEOUT,
    )
    print(f"Cancel: {cancel.status_code} {cancel.text}")


if __name__ == "__main__":
    smoke_booking_flow()
