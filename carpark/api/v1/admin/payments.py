from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.core.exceptions import NotFound
from carpark.models.user import User
from carpark.models.payment import Payment
from carpark.schemas.payment import Payment as PaymentSchema, RefundRequest
from carpark.services.payments import get_rapyd_client, refund

router = APIRouter(prefix="/admin/payments", tags=["Admin - Payments"])


@router.post("/{booking_id}/refund", response_model=PaymentSchema)
def refund_booking(
    booking_id: UUID,
    data: RefundRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """
    Refund a completed payment, fully (no amount) or partially. A full refund
    also cancels the booking.
    """
    payment = db.query(Payment).filter(Payment.booking_id == booking_id).first()
    if not payment:
        raise NotFound("Payment not found")
    return refund(db, get_rapyd_client(db), payment, amount=data.amount, reason=data.reason)
