"""
KEF airport flight data.

Flight lists are scraped from the public kefairport.com pages and cached in
the ``flight_cache`` table, which is shared by the customer booking form and
the operator board.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

import requests
from sqlalchemy.orm import Session

from carpark.core.config import settings
from carpark.core.exceptions import InvalidInput, UpstreamFailure
from carpark.models.system import FlightCache
from carpark.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

PROVIDER = "flights"
DEPARTURES = "departures"
ARRIVALS = "arrivals"
DIRECTIONS = {DEPARTURES: "departure", ARRIVALS: "arrival"}

AIRLINES = {
    "FI": "Icelandair",
    "WW": "WOW air",
    "OG": "PLAY",
    "BA": "British Airways",
    "SK": "SAS",
    "AY": "Finnair",
    "LH": "Lufthansa",
    "EZY": "easyJet",
    "EJU": "easyJet",
    "W6": "Wizz Air",
    "HV": "Transavia",
    "TO": "Transavia France",
    "BT": "airBaltic",
    "NO": "Neos",
    "WK": "Edelweiss",
    "QS": "SmartWings",
    "4Y": "Eurowings Discover",
}

_ROW_RE = re.compile(r'<tr class="FlightListItem_flightListItem[^"]*"[^>]*>(.*?)</tr>', re.I | re.S)
_TIME_TAG_RE = re.compile(r"<time[^>]*>(\d{2}:\d{2})</time>", re.I)
_TIME_RE = re.compile(r">(\d{2}:\d{2})<")
_NUMBER_RE = re.compile(r'FlightListNumbers_flightListNumbers[^"]*"[^>]*>([A-Z0-9]+)</div>', re.I)
_LOCATION_RE = re.compile(r'FlightListItem_flightListItem__destination[^"]*"[^>]*>([^<]+)', re.I)
_STATUS_RE = re.compile(r'Pill_pill__[^"]*"[^>]*>([^<]+)</span>', re.I)
_AIRLINE_CODE_RE = re.compile(r"^([A-Z]{2}|[A-Z]\d|\d[A-Z])")

_DELAY_WORDS = ("delay", "seinkað")


@dataclass
class Flight:
    flight_number: str
    time: str
    location: Optional[str]
    airline: Optional[str]
    status: str


def airline_name(flight_number: str) -> str:
    match = _AIRLINE_CODE_RE.match(flight_number)
    code = match.group(1) if match else flight_number[:2]
    return AIRLINES.get(code, code)


def parse_flights(html: str) -> List[Flight]:
    flights = []
    for row in _ROW_RE.findall(html):
        time_match = _TIME_TAG_RE.search(row) or _TIME_RE.search(row)
        number_match = _NUMBER_RE.search(row)
        if not time_match or not number_match:
            continue
        number = number_match.group(1).upper()
        location = _LOCATION_RE.search(row)
        status = _STATUS_RE.search(row)
        flights.append(Flight(
            flight_number=number,
            time=time_match.group(1),
            location=location.group(1).strip() if location else None,
            airline=airline_name(number),
            status=status.group(1).strip() if status else "On time",
        ))
    flights.sort(key=lambda f: f.time)
    return flights


def fetch_flights(flight_date: date, kind: str, session: Optional[requests.Session] = None) -> List[Flight]:
    http = session or requests.Session()
    url = f"{settings.FLIGHTS_BASE_URL.rstrip('/')}/{kind}"
    logger.info("Fetching %s for %s", kind, flight_date)
    try:
        response = http.get(
            url,
            params={"date": flight_date.isoformat()},
            headers={
                "User-Agent": "Mozilla/5.0 (compatible; KEFParking/1.0)",
                "Accept": "text/html,application/xhtml+xml",
                "Accept-Language": "en-US,en;q=0.9,is;q=0.8",
            },
            allow_redirects=False,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.error("Flight data request failed: %s", e)
        raise UpstreamFailure(PROVIDER, "Flight data unavailable") from e
    if not response.ok:
        logger.error("Flight data request returned %s", response.status_code)
        raise UpstreamFailure(PROVIDER, "Flight data unavailable")
    return parse_flights(response.text)


def _validate(kind: str) -> str:
    if kind not in DIRECTIONS:
        raise InvalidInput("type must be 'departures' or 'arrivals'")
    return DIRECTIONS[kind]


def _cached(db: Session, flight_date: date, direction: str, max_age_minutes: int) -> List[FlightCache]:
    cutoff = utcnow() - timedelta(minutes=max_age_minutes)
    return (
        db.query(FlightCache)
        .filter(
            FlightCache.flight_date == flight_date,
            FlightCache.direction == direction,
            FlightCache.fetched_at >= cutoff,
        )
        .order_by(FlightCache.scheduled_time)
        .all()
    )


def _store(db: Session, flight_date: date, direction: str, flights: List[Flight]) -> None:
    now = utcnow()
    existing: Dict[str, FlightCache] = {
        row.flight_number: row
        for row in db.query(FlightCache).filter(
            FlightCache.flight_date == flight_date, FlightCache.direction == direction
        )
    }
    for flight in flights:
        row = existing.get(flight.flight_number)
        if row is None:
            row = FlightCache(flight_number=flight.flight_number, flight_date=flight_date, direction=direction)
            db.add(row)
            existing[flight.flight_number] = row
        row.scheduled_time = flight.time
        row.location = flight.location
        row.airline = flight.airline
        row.status = flight.status
        row.fetched_at = now
    db.commit()
    logger.info("Cached %d %s flights for %s", len(flights), direction, flight_date)


def purge_old_flights(db: Session, today: Optional[date] = None) -> int:
    """Drop cached flights dated more than FLIGHT_CACHE_KEEP_DAYS before today."""
    today = today or utcnow().date()
    cutoff = today - timedelta(days=settings.FLIGHT_CACHE_KEEP_DAYS)
    count = (
        db.query(FlightCache)
        .filter(FlightCache.flight_date < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return count


def _to_flight(row: FlightCache) -> Flight:
    return Flight(
        flight_number=row.flight_number,
        time=row.scheduled_time,
        location=row.location,
        airline=row.airline,
        status=row.status or "On time",
    )


def get_flights(
    db: Session,
    flight_date: date,
    kind: str,
    max_age_minutes: Optional[int] = None,
    session: Optional[requests.Session] = None,
) -> List[Flight]:
    """Cached flight list; refetches when nothing fresher than ``max_age_minutes`` exists."""
    direction = _validate(kind)
    max_age = settings.FLIGHT_LIST_CACHE_MINUTES if max_age_minutes is None else max_age_minutes
    rows = _cached(db, flight_date, direction, max_age)
    if rows:
        return [_to_flight(r) for r in rows]

    flights = fetch_flights(flight_date, kind, session=session)
    _store(db, flight_date, direction, flights)
    return flights


def get_departures(db: Session, flight_date: date, session: Optional[requests.Session] = None) -> List[Flight]:
    return get_flights(db, flight_date, DEPARTURES, session=session)


def get_arrivals(db: Session, flight_date: date, session: Optional[requests.Session] = None) -> List[Flight]:
    return get_flights(db, flight_date, ARRIVALS, session=session)


def is_delayed(status: Optional[str]) -> bool:
    text = (status or "").lower()
    return any(word in text for word in _DELAY_WORDS)


def get_flight_statuses(
    db: Session,
    flight_numbers: List[str],
    flight_date: date,
    kind: str,
    session: Optional[requests.Session] = None,
) -> List[dict]:
    """Status rows for specific flights, refreshed more often than the lists."""
    direction = _validate(kind)
    numbers = [n.strip().upper() for n in flight_numbers if n.strip()]
    if not numbers:
        return []

    def load():
        return (
            db.query(FlightCache)
            .filter(
                FlightCache.flight_number.in_(numbers),
                FlightCache.flight_date == flight_date,
                FlightCache.direction == direction,
            )
            .all()
        )

    rows = load()
    cutoff = utcnow() - timedelta(minutes=settings.FLIGHT_STATUS_CACHE_MINUTES)
    if not rows or any(as_utc(r.fetched_at) < cutoff for r in rows):
        _store(db, flight_date, direction, fetch_flights(flight_date, kind, session=session))
        rows = load()

    return [
        {
            "flight_number": r.flight_number,
            "scheduled_time": r.scheduled_time,
            "location": r.location,
            "airline": r.airline,
            "status": r.status or "On time",
            "is_delayed": is_delayed(r.status),
            "fetched_at": as_utc(r.fetched_at),
        }
        for r in rows
    ]
