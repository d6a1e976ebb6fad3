import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_BOOKINGS"] = "1000"
os.environ["RATE_LIMIT_VEHICLE_LOOKUPS"] = "1000"
os.environ["RATE_LIMIT_FLIGHTS"] = "1000"
os.environ["SMTP_HOST"] = ""
os.environ["RAPYD_ACCESS_KEY"] = ""
os.environ["RAPYD_SECRET_KEY"] = ""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from carpark.core.security import create_access_token
from carpark.db.base import Base
from carpark.db.session import get_db
from carpark.main import app
from carpark.models.booking import Booking, BookingStatus
from carpark.models.lot import Lot, LotPricing, VehicleType
from carpark.models.service import LotService, Service, ServiceCategory
from carpark.models.user import User, UserRole
from carpark.models.vehicle import Vehicle
from carpark.utils.clock import utcnow

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@pytest.fixture
def vehicle_types(db):
    types = {
        code: VehicleType(code=code, name=name, name_en=name, sort_order=order)
        for order, (code, name) in enumerate(
            [("small", "Small (S)"), ("medium", "Medium (M)"), ("large", "Large (L)"), ("xlarge", "Extra Large (XL)")],
            start=1,
        )
    }
    db.add_all(types.values())
    db.commit()
    return types


@pytest.fixture
def lot(db):
    lot = Lot(name="KEF Bílastæði", name_en="KEF Parking", slug="kef-main", total_spaces=10, is_active=True)
    db.add(lot)
    db.commit()
    return lot


@pytest.fixture
def pricing(db, lot, vehicle_types):
    rows = [
        LotPricing(
            lot_id=lot.id,
            vehicle_type_id=vt.id,
            price_per_day=600,
            weekly_discount=10,
            monthly_discount=20,
            is_active=True,
        )
        for vt in vehicle_types.values()
    ]
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def wash(db, lot, vehicle_types):
    category = ServiceCategory(code="cleaning", name="Þrif", name_en="Cleaning", sort_order=1)
    service = Service(code="exterior_wash", name="Þvottur að utan", name_en="Exterior Washing", category=category)
    db.add_all([category, service])
    db.flush()
    for price, vt in zip((11000, 13000, 15000, 15000), vehicle_types.values()):
        db.add(LotService(lot_id=lot.id, service_id=service.id, vehicle_type_id=vt.id, price=price))
    db.commit()
    return service


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def _user(db, email, role):
    user = User(email=email, full_name=email.split("@")[0].title(), role=role, is_active=True)
    db.add(user)
    db.commit()
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(subject=str(user.id), role=user.role.value)}"}


@pytest.fixture
def customer(db):
    return _user(db, "customer@example.com", UserRole.CUSTOMER)


@pytest.fixture
def operator(db):
    return _user(db, "operator@example.com", UserRole.OPERATOR)


@pytest.fixture
def admin(db):
    return _user(db, "admin@example.com", UserRole.ADMIN)


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@pytest.fixture
def make_booking(db, lot, vehicle_types, customer):
    """Insert a booking directly, bypassing pricing and capacity checks."""
    counter = {"n": 0}

    def _make(status=BookingStatus.CONFIRMED, starts_in=timedelta(days=2), days=3, plate=None, **fields):
        counter["n"] += 1
        vehicle = Vehicle(
            license_plate=plate or f"AB{100 + counter['n']}",
            vehicle_type_id=vehicle_types["medium"].id,
            owner_id=customer.id,
        )
        db.add(vehicle)
        db.flush()
        drop_off = utcnow() + starts_in
        booking = Booking(
            reference=f"KEF-2026-T{counter['n']:05d}",
            user_id=customer.id,
            vehicle_id=vehicle.id,
            lot_id=lot.id,
            status=status,
            drop_off_time=drop_off,
            pick_up_time=drop_off + timedelta(days=days),
            total_days=days,
            base_price_per_day=600,
            base_total=600 * days,
            discount_amount=0,
            addons_total=0,
            total_price=600 * days,
            **fields,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def operator_headers(operator):
    return auth_headers(operator)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
