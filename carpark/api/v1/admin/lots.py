from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.core.exceptions import Conflict, NotFound
from carpark.models.user import User
from carpark.models.lot import Lot, VehicleType
from carpark.schemas.lot import (
    Lot as LotSchema, LotCreate, LotUpdate,
    VehicleType as VehicleTypeSchema, VehicleTypeCreate, VehicleTypeUpdate,
)
from carpark.utils.slug import generate_slug, make_unique_lot_slug

router = APIRouter(prefix="/admin/lots", tags=["Admin - Lots"])
vehicle_type_router = APIRouter(prefix="/admin/vehicle-types", tags=["Admin - Vehicle Types"])


def _get_lot(db: Session, lot_id: UUID) -> Lot:
    lot = db.get(Lot, lot_id)
    if not lot:
        raise NotFound("Lot not found")
    return lot


@router.get("/", response_model=List[LotSchema])
def list_lots(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return db.query(Lot).order_by(Lot.created_at).all()


@router.post("/", response_model=LotSchema, status_code=status.HTTP_201_CREATED)
def create_lot(
    data: LotCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    if data.slug:
        slug = generate_slug(data.slug)
        if db.query(Lot.id).filter(Lot.slug == slug).first():
            raise Conflict("Slug already in use")
    else:
        slug = make_unique_lot_slug(db, data.name)
    lot = Lot(**data.model_dump(exclude={"slug"}), slug=slug, is_active=True)
    db.add(lot)
    db.commit()
    db.refresh(lot)
    return lot


@router.patch("/{lot_id}", response_model=LotSchema)
def update_lot(
    lot_id: UUID,
    data: LotUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    lot = _get_lot(db, lot_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(lot, field, value)
    db.commit()
    db.refresh(lot)
    return lot


@router.delete("/{lot_id}", response_model=LotSchema)
def deactivate_lot(
    lot_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Lots are referenced by bookings, so they are deactivated rather than deleted."""
    lot = _get_lot(db, lot_id)
    lot.is_active = False
    db.commit()
    db.refresh(lot)
    return lot


# ---------------------------------------------------------------------------
# Vehicle types
# ---------------------------------------------------------------------------


@vehicle_type_router.get("/", response_model=List[VehicleTypeSchema])
def list_vehicle_types(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return db.query(VehicleType).order_by(VehicleType.sort_order).all()


@vehicle_type_router.post("/", response_model=VehicleTypeSchema, status_code=status.HTTP_201_CREATED)
def create_vehicle_type(
    data: VehicleTypeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    code = data.code.strip().lower()
    if db.query(VehicleType.id).filter(VehicleType.code == code).first():
        raise Conflict("Vehicle type code already exists")
    vehicle_type = VehicleType(**data.model_dump(exclude={"code"}), code=code)
    db.add(vehicle_type)
    db.commit()
    db.refresh(vehicle_type)
    return vehicle_type


@vehicle_type_router.patch("/{vehicle_type_id}", response_model=VehicleTypeSchema)
def update_vehicle_type(
    vehicle_type_id: UUID,
    data: VehicleTypeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    vehicle_type = db.get(VehicleType, vehicle_type_id)
    if not vehicle_type:
        raise NotFound("Vehicle type not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(vehicle_type, field, value)
    db.commit()
    db.refresh(vehicle_type)
    return vehicle_type
