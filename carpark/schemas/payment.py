from typing import Literal, Optional
from pydantic import BaseModel, UUID4, Field
from datetime import datetime

from carpark.models.payment import PaymentStatus


# POST /payments/checkout
class CheckoutRequest(BaseModel):
    booking_reference: str
    locale: Literal["is", "en"] = "is"


class CheckoutResponse(BaseModel):
    checkout_id: Optional[str] = None
    redirect_url: Optional[str] = None
    booking_reference: str
    amount: int
    currency: str


class Payment(BaseModel):
    id: UUID4
    booking_id: UUID4
    amount: int
    currency: str
    status: PaymentStatus
    provider: str
    provider_ref: Optional[str] = None
    paid_at: Optional[datetime] = None
    refund_amount: Optional[int] = None
    refunded_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# GET /payments/status
class PaymentStatusResponse(BaseModel):
    booking_reference: str
    booking_status: str
    payment: Optional[Payment] = None


# POST /admin/payments/{booking_id}/refund
class RefundRequest(BaseModel):
    amount: Optional[int] = Field(default=None, gt=0)
    reason: Optional[str] = None
