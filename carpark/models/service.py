import uuid
from sqlalchemy import Column, String, Boolean, Integer, ForeignKey, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from carpark.db.session import Base

class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(50), unique=True, nullable=False) # charging, cleaning, ...
    name = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=True)
    icon = Column(String(50), nullable=True)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    services = relationship("Service", back_populates="category")

class Service(Base):
    __tablename__ = "services"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("service_categories.id"), nullable=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    category = relationship("ServiceCategory", back_populates="services")
    lot_services = relationship("LotService", back_populates="service", cascade="all, delete-orphan")

class LotService(Base):
    """Price of an addon service at a lot for one vehicle size."""

    __tablename__ = "lot_services"
    __table_args__ = (
        UniqueConstraint("lot_id", "service_id", "vehicle_type_id", name="uq_lot_service_vehicle_type"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    lot_id = Column(Uuid, ForeignKey("lots.id"), nullable=False, index=True)
    service_id = Column(Uuid, ForeignKey("services.id"), nullable=False, index=True)
    vehicle_type_id = Column(Uuid, ForeignKey("vehicle_types.id"), nullable=False)
    price = Column(Integer, nullable=False)
    is_available = Column(Boolean, default=True)

    lot = relationship("Lot", back_populates="services")
    service = relationship("Service", back_populates="lot_services")
    vehicle_type = relationship("VehicleType")
