from typing import List, Optional
from uuid import UUID
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_operator
from carpark.core.config import settings
from carpark.core.rate_limit import RateLimiter
from carpark.models.booking import Booking, BookingStatus
from carpark.models.payment import Payment, PaymentStatus
from carpark.models.user import User
from carpark.schemas.common import DashboardStats, StatusCount
from carpark.schemas.flight import FlightStatus
from carpark.services import flights
from carpark.services.availability import OCCUPYING_STATUSES, lot_available_spaces
from carpark.services.bookings import resolve_lot
from carpark.utils.clock import day_bounds

router = APIRouter(prefix="/operator", tags=["Operator - Dashboard"])

ON_SITE_STATUSES = (BookingStatus.CHECKED_IN, BookingStatus.IN_PROGRESS, BookingStatus.READY)


def build_dashboard(db: Session, day: date, lot_id: Optional[UUID] = None) -> DashboardStats:
    start, end = day_bounds(day)
    bookings = db.query(Booking)
    if lot_id:
        bookings = bookings.filter(Booking.lot_id == lot_id)

    by_status = (
        bookings.with_entities(Booking.status, func.count(Booking.id))
        .group_by(Booking.status)
        .all()
    )
    revenue_query = (
        db.query(func.coalesce(func.sum(Payment.amount - func.coalesce(Payment.refund_amount, 0)), 0))
        .join(Booking, Booking.id == Payment.booking_id)
        .filter(Payment.status.in_((PaymentStatus.COMPLETED, PaymentStatus.PARTIALLY_REFUNDED)))
    )
    if lot_id:
        revenue_query = revenue_query.filter(Booking.lot_id == lot_id)

    available = None
    if lot_id:
        available = lot_available_spaces(db, resolve_lot(db, lot_id))

    return DashboardStats(
        total_bookings=bookings.count(),
        total_revenue=int(revenue_query.scalar() or 0),
        total_users=db.query(func.count(User.id)).scalar() or 0,
        todays_drop_offs=bookings.filter(
            Booking.drop_off_time >= start,
            Booking.drop_off_time < end,
            Booking.status.in_(OCCUPYING_STATUSES),
        ).count(),
        todays_pick_ups=bookings.filter(
            Booking.pick_up_time >= start,
            Booking.pick_up_time < end,
            Booking.status.in_(OCCUPYING_STATUSES),
        ).count(),
        on_site=bookings.filter(Booking.status.in_(ON_SITE_STATUSES)).count(),
        available_spaces=available,
        by_status=[StatusCount(status=BookingStatus(s).value, count=c) for s, c in by_status],
    )


@router.get("/dashboard", response_model=DashboardStats)
def operator_dashboard(
    lot_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_operator),
):
    return build_dashboard(db, datetime.now(timezone.utc).date(), lot_id)


@router.get(
    "/flights/status",
    response_model=List[FlightStatus],
    dependencies=[Depends(RateLimiter("flights", settings.RATE_LIMIT_FLIGHTS))],
)
def flight_status(
    date: date,
    type: str = Query(..., pattern="^(departures|arrivals)$"),
    flight_numbers: str = Query(..., alias="flights", description="Comma-separated flight numbers"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_operator),
):
    return flights.get_flight_statuses(db, flight_numbers.split(","), date, type)
