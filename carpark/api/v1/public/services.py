from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from carpark.db.session import get_db
from carpark.models.service import LotService, Service, ServiceCategory
from carpark.schemas.service import CategoryWithOffers, ServiceOffer
from carpark.services.bookings import resolve_lot, resolve_vehicle_type

router = APIRouter(prefix="/services", tags=["Services"])


@router.get("/", response_model=List[CategoryWithOffers])
def list_services(
    vehicle_type_id: Optional[UUID] = None,
    vehicle_type_code: Optional[str] = None,
    lot_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
):
    """Addon catalog for a lot and vehicle type, grouped by category."""
    lot = resolve_lot(db, lot_id)
    vehicle_type = resolve_vehicle_type(db, vehicle_type_id, vehicle_type_code or "medium")
    offers = (
        db.query(LotService)
        .join(Service, Service.id == LotService.service_id)
        .options(joinedload(LotService.service).joinedload(Service.category))
        .filter(
            LotService.lot_id == lot.id,
            LotService.vehicle_type_id == vehicle_type.id,
            LotService.is_available == True,  # noqa: E712
            Service.is_active == True,  # noqa: E712
        )
        .order_by(Service.sort_order)
        .all()
    )

    groups = {}
    for offer in offers:
        category: Optional[ServiceCategory] = offer.service.category
        if category is not None and not category.is_active:
            continue
        key = category.id if category else None
        group = groups.setdefault(key, CategoryWithOffers(category=category))
        group.offers.append(ServiceOffer(service=offer.service, price=offer.price))

    return sorted(
        groups.values(),
        key=lambda g: g.category.sort_order if g.category else 1_000_000,
    )
