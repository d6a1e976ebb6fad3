from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.core.exceptions import Conflict, NotFound
from carpark.models.user import User
from carpark.models.lot import Lot, VehicleType
from carpark.models.service import LotService, Service, ServiceCategory
from carpark.schemas.service import (
    Service as ServiceSchema, ServiceCreate, ServiceUpdate,
    ServiceCategory as ServiceCategorySchema, ServiceCategoryCreate,
    LotServicePrice, LotServicePriceOut,
)

router = APIRouter(prefix="/admin/services", tags=["Admin - Services"])
category_router = APIRouter(prefix="/admin/service-categories", tags=["Admin - Services"])


def _get_service(db: Session, service_id: UUID) -> Service:
    service = db.get(Service, service_id)
    if not service:
        raise NotFound("Service not found")
    return service


@category_router.get("/", response_model=List[ServiceCategorySchema])
def list_categories(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return db.query(ServiceCategory).order_by(ServiceCategory.sort_order).all()


@category_router.post("/", response_model=ServiceCategorySchema, status_code=status.HTTP_201_CREATED)
def create_category(
    data: ServiceCategoryCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    if db.query(ServiceCategory.id).filter(ServiceCategory.code == data.code).first():
        raise Conflict("Category code already exists")
    category = ServiceCategory(**data.model_dump())
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.get("/", response_model=List[ServiceSchema])
def list_services(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return db.query(Service).order_by(Service.sort_order).all()


@router.post("/", response_model=ServiceSchema, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    if db.query(Service.id).filter(Service.code == data.code).first():
        raise Conflict("Service code already exists")
    if data.category_id and not db.get(ServiceCategory, data.category_id):
        raise NotFound("Category not found")
    service = Service(**data.model_dump(), is_active=True)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@router.patch("/{service_id}", response_model=ServiceSchema)
def update_service(
    service_id: UUID,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    service = _get_service(db, service_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    db.commit()
    db.refresh(service)
    return service


@router.delete("/{service_id}", response_model=ServiceSchema)
def deactivate_service(
    service_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Past bookings keep their addons, so services are only deactivated."""
    service = _get_service(db, service_id)
    service.is_active = False
    db.commit()
    db.refresh(service)
    return service


@router.get("/{service_id}/prices", response_model=List[LotServicePriceOut])
def list_service_prices(
    service_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    _get_service(db, service_id)
    return db.query(LotService).filter(LotService.service_id == service_id).all()


@router.put("/{service_id}/prices", response_model=LotServicePriceOut)
def set_service_price(
    service_id: UUID,
    data: LotServicePrice,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Create or update the price of a service at a lot for one vehicle type."""
    _get_service(db, service_id)
    if not db.get(Lot, data.lot_id):
        raise NotFound("Lot not found")
    if not db.get(VehicleType, data.vehicle_type_id):
        raise NotFound("Vehicle type not found")

    offer = (
        db.query(LotService)
        .filter(
            LotService.service_id == service_id,
            LotService.lot_id == data.lot_id,
            LotService.vehicle_type_id == data.vehicle_type_id,
        )
        .first()
    )
    if offer is None:
        offer = LotService(service_id=service_id, lot_id=data.lot_id, vehicle_type_id=data.vehicle_type_id)
        db.add(offer)
    offer.price = data.price
    offer.is_available = data.is_available
    db.commit()
    db.refresh(offer)
    return offer
