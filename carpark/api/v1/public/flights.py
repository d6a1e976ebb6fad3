from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.core.config import settings
from carpark.core.rate_limit import RateLimiter
from carpark.schemas.flight import FlightList
from carpark.services import flights

router = APIRouter(
    prefix="/flights",
    tags=["Flights"],
    dependencies=[Depends(RateLimiter("flights", settings.RATE_LIMIT_FLIGHTS))],
)


@router.get("/departures", response_model=FlightList)
def list_departures(date: date, db: Session = Depends(get_db)):
    """Departures from KEF on a date, for picking the outbound flight at checkout."""
    return FlightList(date=date, type=flights.DEPARTURES, flights=flights.get_departures(db, date))


@router.get("/arrivals", response_model=FlightList)
def list_arrivals(date: date, db: Session = Depends(get_db)):
    return FlightList(date=date, type=flights.ARRIVALS, flights=flights.get_arrivals(db, date))
