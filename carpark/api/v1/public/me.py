from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload

from carpark.db.session import get_db
from carpark.api.deps import get_current_user
from carpark.models.user import User
from carpark.models.booking import Booking, BookingAddon, BookingStatus
from carpark.models.vehicle import Vehicle
from carpark.schemas.user import User as UserSchema, UserUpdate
from carpark.schemas.booking import Booking as BookingSchema
from carpark.schemas.vehicle import Vehicle as VehicleSchema
from carpark.schemas.common import PaginatedResponse

router = APIRouter(prefix="/me", tags=["Me"])


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------


@router.get("/", response_model=UserSchema)
def get_me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return current_user


@router.patch("/", response_model=UserSchema)
def update_me(
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update the authenticated user's profile (full_name, phone, locale)."""
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    db.commit()
    db.refresh(current_user)
    return current_user


# ---------------------------------------------------------------------------
# Bookings & vehicles
# ---------------------------------------------------------------------------


@router.get("/bookings", response_model=PaginatedResponse[BookingSchema])
def list_my_bookings(
    status: Optional[BookingStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Return the current user's bookings, newest drop-off first."""
    query = db.query(Booking).filter(Booking.user_id == current_user.id)
    if status:
        query = query.filter(Booking.status == status)

    total = query.count()
    bookings = (
        query.options(
            joinedload(Booking.lot),
            joinedload(Booking.vehicle).joinedload(Vehicle.vehicle_type),
            joinedload(Booking.addons).joinedload(BookingAddon.service),
        )
        .order_by(Booking.drop_off_time.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return PaginatedResponse(
        data=bookings,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.get("/vehicles", response_model=List[VehicleSchema])
def list_my_vehicles(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return (
        db.query(Vehicle)
        .options(joinedload(Vehicle.vehicle_type))
        .filter(Vehicle.owner_id == current_user.id)
        .order_by(Vehicle.created_at.desc())
        .all()
    )
