from typing import List, Optional
from pydantic import BaseModel
from datetime import date, datetime


class Flight(BaseModel):
    flight_number: str
    time: str
    location: Optional[str] = None
    airline: Optional[str] = None
    status: str

    class Config:
        from_attributes = True


class FlightList(BaseModel):
    date: date
    type: str
    flights: List[Flight]


class FlightStatus(BaseModel):
    flight_number: str
    scheduled_time: str
    location: Optional[str] = None
    airline: Optional[str] = None
    status: str
    is_delayed: bool
    fetched_at: datetime
