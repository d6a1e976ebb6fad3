from typing import Any, Dict, Optional
from pydantic import BaseModel, UUID4, Field
from datetime import datetime


# POST /reservations
class ReservationCreate(BaseModel):
    session_id: str = Field(min_length=8, max_length=100)
    lot_id: Optional[UUID4] = None
    start_date: datetime
    end_date: datetime
    booking_data: Optional[Dict[str, Any]] = None


class Reservation(BaseModel):
    session_id: str
    lot_id: UUID4
    start_date: datetime
    end_date: datetime
    expires_at: datetime
    remaining_seconds: int
    booking_data: Optional[Dict[str, Any]] = None


# GET /reservations/{session_id}
class ReservationStatus(BaseModel):
    active: bool
    reservation: Optional[Reservation] = None


class ReservationReleaseResponse(BaseModel):
    released: bool
