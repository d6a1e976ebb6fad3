from typing import Optional
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.models.user import User
from carpark.models.booking import Booking, BookingStatus
from carpark.models.vehicle import Vehicle
from carpark.schemas.booking import AdminBooking
from carpark.schemas.common import PaginatedResponse
from carpark.services.bookings import booking_query
from carpark.utils.clock import day_bounds

router = APIRouter(prefix="/admin/bookings", tags=["Admin - Bookings"])


@router.get("/", response_model=PaginatedResponse[AdminBooking])
def list_all_bookings(
    status: Optional[BookingStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = Query(None, description="Reference, plate or guest email"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """All bookings with filters, newest first (admin only)."""
    ids = db.query(Booking.id).outerjoin(Vehicle, Vehicle.id == Booking.vehicle_id)
    if status:
        ids = ids.filter(Booking.status == status)
    if date_from:
        ids = ids.filter(Booking.drop_off_time >= day_bounds(date_from)[0])
    if date_to:
        ids = ids.filter(Booking.drop_off_time < day_bounds(date_to)[1])
    if search:
        needle = f"%{search.strip()}%"
        ids = ids.filter(or_(
            Booking.reference.ilike(needle),
            Vehicle.license_plate.ilike(needle),
            Booking.guest_email.ilike(needle),
        ))

    total = ids.count()
    page_ids = [
        row.id for row in
        ids.order_by(Booking.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    ]
    bookings = booking_query(db).filter(Booking.id.in_(page_ids)).order_by(Booking.created_at.desc()).all()

    return PaginatedResponse(
        data=bookings,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )
