from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session, joinedload

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.core.exceptions import InvalidInput, NotFound
from carpark.models.user import User
from carpark.models.lot import Lot, LotPricing, VehicleType
from carpark.schemas.pricing import Pricing, PricingCreate, PricingUpdate, PriceCalculation, PriceQuote
from carpark.services.pricing import calculate_price
from carpark.utils.clock import as_utc

router = APIRouter(prefix="/admin/pricing", tags=["Admin - Pricing"])


def _deactivate_others(db: Session, pricing: LotPricing) -> None:
    """At most one active row per (lot, vehicle type)."""
    db.query(LotPricing).filter(
        LotPricing.lot_id == pricing.lot_id,
        LotPricing.vehicle_type_id == pricing.vehicle_type_id,
        LotPricing.is_active == True,  # noqa: E712
        LotPricing.id != pricing.id,
    ).update({LotPricing.is_active: False}, synchronize_session=False)


@router.get("/", response_model=List[Pricing])
def list_pricing(
    lot_id: Optional[UUID] = None,
    include_inactive: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(LotPricing).options(joinedload(LotPricing.vehicle_type))
    if lot_id:
        query = query.filter(LotPricing.lot_id == lot_id)
    if not include_inactive:
        query = query.filter(LotPricing.is_active == True)  # noqa: E712
    return query.order_by(LotPricing.created_at.desc()).all()


@router.post("/", response_model=Pricing, status_code=status.HTTP_201_CREATED)
def create_pricing(
    data: PricingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """New price for a lot and vehicle type. Replaces the currently active row."""
    if not db.get(Lot, data.lot_id):
        raise NotFound("Lot not found")
    if not db.get(VehicleType, data.vehicle_type_id):
        raise NotFound("Vehicle type not found")

    pricing = LotPricing(**data.model_dump(), is_active=True)
    db.add(pricing)
    db.flush()
    _deactivate_others(db, pricing)
    db.commit()
    db.refresh(pricing)
    return pricing


@router.patch("/{pricing_id}", response_model=Pricing)
def update_pricing(
    pricing_id: UUID,
    data: PricingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    pricing = db.get(LotPricing, pricing_id)
    if not pricing:
        raise NotFound("Pricing not found")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(pricing, field, value)
    if pricing.is_active:
        _deactivate_others(db, pricing)
    db.commit()
    db.refresh(pricing)
    return pricing


@router.delete("/{pricing_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_pricing(
    pricing_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    pricing = db.get(LotPricing, pricing_id)
    if not pricing:
        raise NotFound("Pricing not found")
    db.delete(pricing)
    db.commit()


@router.post("/calculate", response_model=PriceQuote)
def calculate(
    data: PriceCalculation,
    current_user: User = Depends(get_current_admin_user),
):
    """Try out a price and discounts before saving them."""
    drop_off, pick_up = as_utc(data.drop_off_time), as_utc(data.pick_up_time)
    if pick_up <= drop_off:
        raise InvalidInput("Pick-up time must be after drop-off time")
    return calculate_price(
        data.price_per_day,
        drop_off,
        pick_up,
        weekly_discount=data.weekly_discount,
        monthly_discount=data.monthly_discount,
    )
