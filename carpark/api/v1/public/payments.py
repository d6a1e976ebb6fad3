from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import ensure_booking_access, get_current_user_optional
from carpark.models.user import User
from carpark.schemas.payment import CheckoutRequest, CheckoutResponse, PaymentStatusResponse
from carpark.services import email
from carpark.services.app_settings import SEND_BOOKING_CONFIRMATION, get_setting
from carpark.services.bookings import get_booking_by_reference
from carpark.services.payments import get_rapyd_client, start_checkout, sync_payment_status
from carpark.models.booking import BookingStatus
from carpark.models.payment import PaymentStatus

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/checkout", response_model=CheckoutResponse)
def create_checkout(
    body: CheckoutRequest,
    email_address: Optional[str] = Query(None, alias="email"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """Start a hosted card checkout for a PENDING booking and return its redirect URL."""
    booking = get_booking_by_reference(db, body.booking_reference)
    ensure_booking_access(booking, current_user, email_address)
    return start_checkout(db, get_rapyd_client(db), booking, locale=body.locale)


@router.get("/status", response_model=PaymentStatusResponse)
def payment_status(
    reference: str,
    email_address: Optional[str] = Query(None, alias="email"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """
    Polled by the confirmation page after the gateway redirect, in case the
    webhook has not arrived yet.
    """
    booking = get_booking_by_reference(db, reference)
    ensure_booking_access(booking, current_user, email_address)

    was_pending = booking.status == BookingStatus.PENDING
    payment = booking.payment
    if payment is not None and payment.status == PaymentStatus.PENDING:
        payment = sync_payment_status(db, get_rapyd_client(db), booking)
        db.refresh(booking)
        if was_pending and booking.status == BookingStatus.CONFIRMED and get_setting(db, SEND_BOOKING_CONFIRMATION):
            email.send_booking_confirmation(booking)

    return PaymentStatusResponse(
        booking_reference=booking.reference,
        booking_status=booking.status.value,
        payment=payment,
    )
