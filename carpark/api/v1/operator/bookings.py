from uuid import UUID
from typing import List, Optional
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_operator
from carpark.core.exceptions import NotFound
from carpark.models.user import User
from carpark.models.booking import Booking, BookingAddon, BookingStatus
from carpark.schemas.booking import (
    AdminBooking,
    AddonStatusUpdate,
    AddonUpdateResponse,
    BookingStatusUpdate,
    BookingUpdateResponse,
    EmailSendResponse,
)
from carpark.services import email
from carpark.services.bookings import apply_staff_update, booking_query, get_booking
from carpark.services.lifecycle import set_addon_status
from carpark.utils.clock import day_bounds

router = APIRouter(prefix="/operator/bookings", tags=["Operator - Bookings"])


@router.get("/", response_model=List[AdminBooking])
def day_board(
    day: Optional[date] = Query(None, alias="date"),
    status: Optional[BookingStatus] = None,
    search: Optional[str] = Query(None, description="Reference, plate or customer name"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_operator),
):
    """Every booking dropping off or picking up on a day, plus cars currently on site."""
    start, end = day_bounds(day or datetime.now(timezone.utc).date())
    query = booking_query(db).filter(
        or_(
            and_(Booking.drop_off_time >= start, Booking.drop_off_time < end),
            and_(Booking.pick_up_time >= start, Booking.pick_up_time < end),
            Booking.status.in_((BookingStatus.CHECKED_IN, BookingStatus.IN_PROGRESS, BookingStatus.READY)),
        )
    )
    if status:
        query = query.filter(Booking.status == status)

    bookings = query.order_by(Booking.drop_off_time).all()
    if search:
        needle = search.strip().lower()
        bookings = [
            b for b in bookings
            if needle in b.reference.lower()
            or (b.vehicle and needle in b.vehicle.license_plate.lower())
            or (b.user and needle in b.user.full_name.lower())
            or (b.guest_name and needle in b.guest_name.lower())
        ]
    return bookings


@router.get("/{booking_id}", response_model=AdminBooking)
def get_operator_booking(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_operator),
):
    return get_booking(db, booking_id)


@router.patch("/{booking_id}", response_model=BookingUpdateResponse)
def update_booking(
    booking_id: UUID,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_operator),
):
    """
    Move the booking along CONFIRMED → CHECKED_IN → IN_PROGRESS → READY →
    CHECKED_OUT (skipping is allowed, going back is not), or to CANCELLED /
    NO_SHOW. Also sets spot number and notes.
    """
    booking = get_booking(db, booking_id)
    email_sent = apply_staff_update(db, booking, data)
    return BookingUpdateResponse(booking=get_booking(db, booking_id), email_sent=email_sent)


@router.patch("/{booking_id}/addons/{addon_id}", response_model=AddonUpdateResponse)
def update_addon(
    booking_id: UUID,
    addon_id: UUID,
    data: AddonStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_operator),
):
    """Completing or skipping the last open addon of an IN_PROGRESS booking makes it READY."""
    addon = (
        db.query(BookingAddon)
        .filter(BookingAddon.id == addon_id, BookingAddon.booking_id == booking_id)
        .first()
    )
    if not addon:
        raise NotFound("Addon not found")

    set_addon_status(db, addon, data.status, notes=data.notes)
    db.commit()
    db.refresh(addon)
    booking = db.get(Booking, booking_id)
    return AddonUpdateResponse(addon=addon, booking_status=booking.status)


@router.post("/{booking_id}/send-reminder", response_model=EmailSendResponse)
def send_reminder(
    booking_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_operator),
):
    return EmailSendResponse(email_sent=email.send_booking_reminder(get_booking(db, booking_id)))
