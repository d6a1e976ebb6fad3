import uuid
import enum
from sqlalchemy import Column, String, DateTime, func, Integer, ForeignKey, Uuid, JSON, Enum as SAEnum
from sqlalchemy.orm import relationship
from carpark.db.session import Base

class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"

class Payment(Base):
    """Local mirror of a charge at the payment gateway."""

    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id"), unique=True, nullable=False)
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), default="ISK")
    status = Column(SAEnum(PaymentStatus, native_enum=False), nullable=False, default=PaymentStatus.PENDING)
    provider = Column(String(20), nullable=False, default="rapyd")
    provider_ref = Column(String(100), nullable=True, index=True) # checkout id, then payment id
    provider_data = Column(JSON, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    refund_amount = Column(Integer, nullable=True)
    refunded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    booking = relationship("Booking", back_populates="payment")
