import uuid
import enum
from sqlalchemy import Column, String, Boolean, DateTime, func, Uuid, Enum as SAEnum
from sqlalchemy.orm import relationship
from carpark.db.session import Base

class UserRole(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    OPERATOR = "OPERATOR"
    ADMIN = "ADMIN"

class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True) # null for guest checkouts
    full_name = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)
    role = Column(SAEnum(UserRole, native_enum=False), nullable=False, default=UserRole.CUSTOMER)
    locale = Column(String(2), nullable=False, default="is") # is, en
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    bookings = relationship("Booking", back_populates="user")
    vehicles = relationship("Vehicle", back_populates="owner")

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.OPERATOR, UserRole.ADMIN)
