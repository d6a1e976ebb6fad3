from datetime import timedelta

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from carpark.core.rate_limit import RateLimiter, purge_expired_hits
from carpark.db.session import get_db
from carpark.models.system import RateLimitHit
from carpark.utils.clock import utcnow


@pytest.fixture
def limited_client(db):
    app = FastAPI()

    @app.get("/ping", dependencies=[Depends(RateLimiter("ping", 2, window_seconds=60))])
    def ping():
        return {"ok": True}

    app.dependency_overrides[get_db] = lambda: db
    return TestClient(app)


def _aged_hits(db, bucket, clients, age):
    for n in range(clients):
        db.add(RateLimitHit(bucket=bucket, client_key=f"10.1.0.{n}", created_at=utcnow() - age))
    db.commit()


def test_third_call_is_limited(limited_client):
    assert limited_client.get("/ping").status_code == 200
    assert limited_client.get("/ping").status_code == 200

    response = limited_client.get("/ping")
    assert response.status_code == 429
    assert 1 <= int(response.headers["retry-after"]) <= 61


def test_limit_is_per_client(limited_client):
    for _ in range(2):
        limited_client.get("/ping", headers={"x-forwarded-for": "10.0.0.1"})
    assert limited_client.get("/ping", headers={"x-forwarded-for": "10.0.0.1"}).status_code == 429
    assert limited_client.get("/ping", headers={"x-forwarded-for": "10.0.0.2, 172.16.0.1"}).status_code == 200


def test_any_request_prunes_old_hits_of_other_clients(limited_client, db):
    _aged_hits(db, "ping", 50, timedelta(days=30))

    assert limited_client.get("/ping", headers={"x-forwarded-for": "10.9.9.9"}).status_code == 200

    db.expire_all()
    assert db.query(RateLimitHit).filter(RateLimitHit.bucket == "ping").count() == 1


def test_purge_expired_hits_covers_every_bucket(db):
    _aged_hits(db, "bookings", 3, timedelta(hours=1))
    _aged_hits(db, "flights", 2, timedelta(days=2))
    db.add(RateLimitHit(bucket="flights", client_key="10.2.0.1", created_at=utcnow()))
    db.commit()

    assert purge_expired_hits(db, window_seconds=60) == 5
    assert db.query(RateLimitHit).count() == 1
