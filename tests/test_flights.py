from datetime import date, timedelta

import pytest

from carpark.core.exceptions import InvalidInput, UpstreamFailure
from carpark.models.system import FlightCache
from carpark.services import flights
from carpark.utils.clock import utcnow

FLIGHT_DAY = date(2026, 6, 1)

DEPARTURES_HTML = """
<table><tbody>
<tr class="FlightListItem_flightListItem__abc" data-id="1">
  <td><time datetime="2026-06-01T07:40">07:40</time></td>
  <td><div class="FlightListNumbers_flightListNumbers__x">FI204</div></td>
  <td><span class="FlightListItem_flightListItem__destination__q">Copenhagen</span></td>
  <td><span class="Pill_pill__z">Delayed 08:30</span></td>
</tr>
<tr class="FlightListItem_flightListItem__abc" data-id="2">
  <td><time datetime="2026-06-01T06:10">06:10</time></td>
  <td><div class="FlightListNumbers_flightListNumbers__x">og120</div></td>
  <td><span class="FlightListItem_flightListItem__destination__q">London Gatwick</span></td>
</tr>
<tr class="FlightListItem_flightListItem__abc" data-id="3">
  <td>no time here</td>
</tr>
</tbody></table>
"""


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = 0

    def get(self, url, **kwargs):
        self.calls += 1
        self.url = url
        self.kwargs = kwargs
        return self.response


def test_parse_flights_sorted_by_time():
    parsed = flights.parse_flights(DEPARTURES_HTML)
    assert [f.flight_number for f in parsed] == ["OG120", "FI204"]
    play, icelandair = parsed
    assert play.airline == "PLAY"
    assert play.status == "On time"
    assert icelandair.location == "Copenhagen"
    assert icelandair.status == "Delayed 08:30"


def test_airline_name_falls_back_to_code():
    assert flights.airline_name("FI615") == "Icelandair"
    assert flights.airline_name("XQ100") == "XQ"


def test_is_delayed():
    assert flights.is_delayed("Delayed 08:30")
    assert flights.is_delayed("Seinkað")
    assert not flights.is_delayed("Departed")
    assert not flights.is_delayed(None)


def test_fetch_flights_sends_date_and_timeout():
    session = FakeSession(FakeResponse(text=DEPARTURES_HTML))
    flights.fetch_flights(FLIGHT_DAY, flights.DEPARTURES, session=session)
    assert session.url.endswith("/departures")
    assert session.kwargs["params"] == {"date": "2026-06-01"}
    assert session.kwargs["timeout"] > 0


def test_fetch_flights_upstream_error():
    with pytest.raises(UpstreamFailure):
        flights.fetch_flights(FLIGHT_DAY, flights.ARRIVALS, session=FakeSession(FakeResponse(status_code=503)))


def test_get_flights_is_cached(db):
    session = FakeSession(FakeResponse(text=DEPARTURES_HTML))
    first = flights.get_flights(db, FLIGHT_DAY, flights.DEPARTURES, session=session)
    second = flights.get_flights(db, FLIGHT_DAY, flights.DEPARTURES, session=session)
    assert session.calls == 1
    assert [f.flight_number for f in second] == [f.flight_number for f in first]
    assert db.query(FlightCache).count() == 2


def test_get_flights_rejects_unknown_type(db):
    with pytest.raises(InvalidInput):
        flights.get_flights(db, FLIGHT_DAY, "cargo")


def test_flight_statuses_refresh_when_stale(db):
    db.add(FlightCache(
        flight_number="FI204",
        flight_date=FLIGHT_DAY,
        direction="departure",
        scheduled_time="07:40",
        status="On time",
        fetched_at=utcnow() - timedelta(hours=2),
    ))
    db.commit()

    session = FakeSession(FakeResponse(text=DEPARTURES_HTML))
    [status] = flights.get_flight_statuses(db, ["fi204", " "], FLIGHT_DAY, flights.DEPARTURES, session=session)
    assert session.calls == 1
    assert status["flight_number"] == "FI204"
    assert status["status"] == "Delayed 08:30"
    assert status["is_delayed"] is True


def test_flight_statuses_use_fresh_cache(db):
    db.add(FlightCache(
        flight_number="FI204",
        flight_date=FLIGHT_DAY,
        direction="departure",
        scheduled_time="07:40",
        status="Boarding",
        fetched_at=utcnow(),
    ))
    db.commit()

    session = FakeSession(FakeResponse(status_code=500))
    [status] = flights.get_flight_statuses(db, ["FI204"], FLIGHT_DAY, flights.DEPARTURES, session=session)
    assert session.calls == 0
    assert status["status"] == "Boarding"


def test_departures_endpoint_reads_cache(client, db):
    db.add(FlightCache(
        flight_number="FI450",
        flight_date=FLIGHT_DAY,
        direction="departure",
        scheduled_time="16:20",
        location="London Heathrow",
        airline="Icelandair",
        status="On time",
        fetched_at=utcnow(),
    ))
    db.commit()

    response = client.get("/api/v1/flights/departures", params={"date": "2026-06-01"})
    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "departures"
    assert body["flights"][0]["flight_number"] == "FI450"


def test_departures_endpoint_reports_upstream_failure(client, db, monkeypatch):
    def down(flight_date, kind, session=None):
        raise UpstreamFailure(flights.PROVIDER, "Flight data unavailable")

    monkeypatch.setattr(flights, "fetch_flights", down)
    response = client.get("/api/v1/flights/arrivals", params={"date": "2026-06-01"})
    assert response.status_code == 502
    assert response.json()["error"] == "upstream_failure"


def test_purge_old_flights_keeps_recent_days(db):
    for days_ago in (0, 2, 3, 40):
        db.add(FlightCache(
            flight_number="FI204",
            flight_date=FLIGHT_DAY - timedelta(days=days_ago),
            direction="departure",
            scheduled_time="07:40",
            fetched_at=utcnow(),
        ))
    db.commit()

    assert flights.purge_old_flights(db, today=FLIGHT_DAY) == 2
    kept = sorted(row.flight_date for row in db.query(FlightCache))
    assert kept == [FLIGHT_DAY - timedelta(days=2), FLIGHT_DAY]
