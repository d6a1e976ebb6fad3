import uuid
from sqlalchemy import (
    Column, String, Boolean, DateTime, func, Integer, ForeignKey, Text, Uuid, CheckConstraint,
)
from sqlalchemy.orm import relationship
from carpark.db.session import Base

class Lot(Base):
    __tablename__ = "lots"
    __table_args__ = (CheckConstraint("total_spaces >= 0", name="ck_lots_total_spaces"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    instructions = Column(Text, nullable=True)
    instructions_en = Column(Text, nullable=True)
    total_spaces = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    # Relationships
    pricing = relationship("LotPricing", back_populates="lot")
    services = relationship("LotService", back_populates="lot")
    bookings = relationship("Booking", back_populates="lot")

class VehicleType(Base):
    __tablename__ = "vehicle_types"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(20), unique=True, nullable=False, index=True) # small, medium, large, xlarge
    name = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=True)
    sort_order = Column(Integer, default=0)

class LotPricing(Base):
    __tablename__ = "lot_pricing"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lot_id = Column(Uuid, ForeignKey("lots.id"), nullable=False, index=True)
    vehicle_type_id = Column(Uuid, ForeignKey("vehicle_types.id"), nullable=False, index=True)
    price_per_day = Column(Integer, nullable=False)
    weekly_discount = Column(Integer, nullable=True) # percent, applies from 7 days
    monthly_discount = Column(Integer, nullable=True) # percent, applies from 30 days
    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    lot = relationship("Lot", back_populates="pricing")
    vehicle_type = relationship("VehicleType")
