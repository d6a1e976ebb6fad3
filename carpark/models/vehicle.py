import uuid
from sqlalchemy import Column, String, Boolean, DateTime, func, Integer, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from carpark.db.session import Base

class Vehicle(Base):
    __tablename__ = "vehicles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    license_plate = Column(String(10), unique=True, nullable=False, index=True) # normalised: no spaces, upper-case
    vehicle_type_id = Column(Uuid, ForeignKey("vehicle_types.id"), nullable=False)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=True, index=True)
    make = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    year = Column(Integer, nullable=True)
    color = Column(String(50), nullable=True)
    is_electric = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vehicle_type = relationship("VehicleType")
    owner = relationship("User", back_populates="vehicles")
