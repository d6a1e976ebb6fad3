"""Point-in-time lot occupancy."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from carpark.models.booking import Booking, BookingStatus
from carpark.models.lot import Lot
from carpark.utils.clock import utcnow

# Vehicle is (or is due to be) on site
OCCUPYING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
    BookingStatus.IN_PROGRESS,
    BookingStatus.READY,
)


def active_occupancy(db: Session, lot_id: UUID, at: Optional[datetime] = None) -> int:
    at = at or utcnow()
    return (
        db.query(func.count(Booking.id))
        .filter(
            Booking.lot_id == lot_id,
            Booking.status.in_(OCCUPYING_STATUSES),
            Booking.drop_off_time <= at,
            Booking.pick_up_time >= at,
        )
        .scalar()
    ) or 0


def available_spaces(total_spaces: int, occupancy: int) -> int:
    return max(0, total_spaces - occupancy)


def lot_available_spaces(db: Session, lot: Lot, at: Optional[datetime] = None) -> int:
    """Snapshot only. Future date ranges are guarded by the spot reservation check."""
    return available_spaces(lot.total_spaces, active_occupancy(db, lot.id, at))
