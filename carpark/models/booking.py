import uuid
import enum
from sqlalchemy import (
    Column, String, DateTime, func, Integer, ForeignKey, Text, Uuid, JSON, CheckConstraint,
    Enum as SAEnum,
)
from sqlalchemy.orm import relationship
from carpark.db.session import Base

class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"           # created, awaiting payment
    CONFIRMED = "CONFIRMED"
    CHECKED_IN = "CHECKED_IN"
    IN_PROGRESS = "IN_PROGRESS"   # addon services being performed
    READY = "READY"
    CHECKED_OUT = "CHECKED_OUT"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"

class AddonStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"

class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("pick_up_time > drop_off_time", name="ck_bookings_time_range"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    reference = Column(String(20), unique=True, nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = Column(Uuid, ForeignKey("vehicles.id"), nullable=False)
    lot_id = Column(Uuid, ForeignKey("lots.id"), nullable=False, index=True)
    status = Column(SAEnum(BookingStatus, native_enum=False), nullable=False,
                    default=BookingStatus.PENDING, index=True)

    guest_name = Column(String(255), nullable=True)
    guest_email = Column(String(255), nullable=True)
    guest_phone = Column(String(30), nullable=True)

    departure_flight_number = Column(String(10), nullable=True)
    departure_flight_time = Column(DateTime(timezone=True), nullable=True)
    arrival_flight_number = Column(String(10), nullable=True)
    arrival_flight_time = Column(DateTime(timezone=True), nullable=True)

    drop_off_time = Column(DateTime(timezone=True), nullable=False, index=True)
    pick_up_time = Column(DateTime(timezone=True), nullable=False, index=True)
    actual_drop_off = Column(DateTime(timezone=True), nullable=True) # set on check-in
    actual_pick_up = Column(DateTime(timezone=True), nullable=True)  # set on check-out

    # Money is whole ISK
    total_days = Column(Integer, nullable=False)
    base_price_per_day = Column(Integer, nullable=False)
    base_total = Column(Integer, nullable=False)
    discount_amount = Column(Integer, nullable=False, default=0)
    addons_total = Column(Integer, nullable=False, default=0)
    total_price = Column(Integer, nullable=False)

    spot_number = Column(String(20), nullable=True) # operator-assigned
    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    user = relationship("User", back_populates="bookings")
    vehicle = relationship("Vehicle")
    lot = relationship("Lot", back_populates="bookings")
    addons = relationship("BookingAddon", back_populates="booking", cascade="all, delete-orphan")
    payment = relationship("Payment", back_populates="booking", uselist=False, cascade="all, delete-orphan")

class BookingAddon(Base):
    __tablename__ = "booking_addons"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=False)
    price = Column(Integer, nullable=False)
    status = Column(SAEnum(AddonStatus, native_enum=False), nullable=False, default=AddonStatus.PENDING)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    booking = relationship("Booking", back_populates="addons")
    service = relationship("Service")

class SpotReservation(Base):
    """Short-lived hold on lot capacity while a checkout session is open."""

    __tablename__ = "spot_reservations"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    session_id = Column(String(100), unique=True, nullable=False, index=True)
    lot_id = Column(Uuid, ForeignKey("lots.id"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    booking_data = Column(JSON, nullable=True) # checkout form snapshot, opaque to the server
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lot = relationship("Lot")
