from datetime import timedelta

from carpark.main import run_sweep
from carpark.models.booking import SpotReservation
from carpark.models.system import FlightCache, RateLimitHit
from carpark.utils.clock import utcnow


def test_sweep_trims_every_growing_table(db, lot):
    now = utcnow()
    db.add_all([
        SpotReservation(
            session_id="expired-session",
            lot_id=lot.id,
            start_date=now + timedelta(days=1),
            end_date=now + timedelta(days=3),
            expires_at=now - timedelta(minutes=1),
        ),
        SpotReservation(
            session_id="live-session",
            lot_id=lot.id,
            start_date=now + timedelta(days=1),
            end_date=now + timedelta(days=3),
            expires_at=now + timedelta(minutes=5),
        ),
        RateLimitHit(bucket="bookings", client_key="10.0.0.1", created_at=now - timedelta(days=7)),
        RateLimitHit(bucket="bookings", client_key="10.0.0.2", created_at=now),
        FlightCache(
            flight_number="FI450",
            flight_date=now.date() - timedelta(days=30),
            direction="arrival",
            scheduled_time="16:20",
            fetched_at=now - timedelta(days=30),
        ),
        FlightCache(
            flight_number="FI451",
            flight_date=now.date(),
            direction="arrival",
            scheduled_time="18:05",
            fetched_at=now,
        ),
    ])
    db.commit()

    assert run_sweep(db) == {"reservations": 1, "rate_limit_hits": 1, "flights": 1}
    assert [r.session_id for r in db.query(SpotReservation)] == ["live-session"]
    assert [h.client_key for h in db.query(RateLimitHit)] == ["10.0.0.2"]
    assert [f.flight_number for f in db.query(FlightCache)] == ["FI451"]


def test_sweep_on_empty_tables(db):
    assert run_sweep(db) == {"reservations": 0, "rate_limit_hits": 0, "flights": 0}
