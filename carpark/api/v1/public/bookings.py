from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import ensure_booking_access, get_current_user_optional
from carpark.core.config import settings
from carpark.core.rate_limit import RateLimiter
from carpark.models.user import User
from carpark.schemas.booking import (
    BookingCreate,
    Booking as BookingSchema,
    BookingCancelResponse,
    EmailSendResponse,
)
from carpark.services import email
from carpark.services.bookings import create_booking, get_booking_by_reference
from carpark.services.lifecycle import cancel_by_customer


router = APIRouter(prefix="/bookings", tags=["Bookings"])


# ---------------------------------------------------------------------------
# POST /bookings: create a booking (pending payment)
# ---------------------------------------------------------------------------


@router.post(
    "/",
    response_model=BookingSchema,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimiter("bookings", settings.RATE_LIMIT_BOOKINGS))],
)
def create(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """
    Create a booking for a signed-in customer or a guest.

    - Price, discount and addon prices are computed server-side.
    - Pass the checkout `session_id` to consume its spot hold.
    - The booking starts PENDING and is confirmed by the payment webhook.
    """
    return create_booking(db, data, current_user)


@router.get("/{reference}", response_model=BookingSchema)
def lookup(
    reference: str,
    email_address: Optional[str] = Query(None, alias="email"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    booking = get_booking_by_reference(db, reference)
    ensure_booking_access(booking, current_user, email_address)
    return booking


@router.post("/{reference}/cancel", response_model=BookingCancelResponse)
def cancel(
    reference: str,
    email_address: Optional[str] = Query(None, alias="email"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """Cancel before drop-off. 409 `cannot_cancel` once the stay has started or ended."""
    booking = get_booking_by_reference(db, reference)
    ensure_booking_access(booking, current_user, email_address)

    cancel_by_customer(booking)
    db.commit()
    db.refresh(booking)

    return BookingCancelResponse(
        id=booking.id,
        reference=booking.reference,
        status=booking.status,
        cancelled_at=booking.cancelled_at,
        email_sent=email.send_booking_cancellation(booking),
    )


@router.post("/{reference}/send-confirmation", response_model=EmailSendResponse)
def resend_confirmation(
    reference: str,
    email_address: Optional[str] = Query(None, alias="email"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    booking = get_booking_by_reference(db, reference)
    ensure_booking_access(booking, current_user, email_address)
    return EmailSendResponse(email_sent=email.send_booking_confirmation(booking))
