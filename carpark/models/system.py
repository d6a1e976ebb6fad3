import uuid
from sqlalchemy import Column, String, DateTime, Date, func, Uuid, JSON, UniqueConstraint
from carpark.db.session import Base

class FlightCache(Base):
    __tablename__ = "flight_cache"
    __table_args__ = (
        UniqueConstraint("flight_number", "flight_date", "direction", name="uq_flight_cache_flight"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    flight_number = Column(String(10), nullable=False, index=True)
    flight_date = Column(Date, nullable=False, index=True)
    direction = Column(String(10), nullable=False) # departure, arrival
    scheduled_time = Column(String(5), nullable=False) # "HH:MM" airport local time
    location = Column(String(100), nullable=True) # destination or origin
    airline = Column(String(100), nullable=True)
    status = Column(String(50), nullable=True)
    fetched_at = Column(DateTime(timezone=True), nullable=False, index=True)

class Setting(Base):
    """Runtime switches editable from the admin back-office."""

    __tablename__ = "settings"

    key = Column(String(100), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class RateLimitHit(Base):
    __tablename__ = "rate_limit_hits"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bucket = Column(String(50), nullable=False)
    client_key = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
