from uuid import UUID
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from carpark.db.session import get_db
from carpark.models.lot import LotPricing, VehicleType
from carpark.schemas.lot import VehicleType as VehicleTypeSchema
from carpark.schemas.pricing import Pricing, PriceQuote, QuoteRequest
from carpark.services.bookings import resolve_lot, resolve_vehicle_type
from carpark.services.pricing import quote_price

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.get("/", response_model=List[Pricing])
def list_pricing(lot_id: Optional[UUID] = None, db: Session = Depends(get_db)):
    """Active price sheet for a lot (the default lot when none is given)."""
    lot = resolve_lot(db, lot_id)
    return (
        db.query(LotPricing)
        .join(VehicleType, VehicleType.id == LotPricing.vehicle_type_id)
        .options(joinedload(LotPricing.vehicle_type))
        .filter(LotPricing.lot_id == lot.id, LotPricing.is_active == True)  # noqa: E712
        .order_by(VehicleType.sort_order)
        .all()
    )


@router.get("/vehicle-types", response_model=List[VehicleTypeSchema])
def list_vehicle_types(db: Session = Depends(get_db)):
    return db.query(VehicleType).order_by(VehicleType.sort_order).all()


@router.post("/quote", response_model=PriceQuote)
def quote(body: QuoteRequest, db: Session = Depends(get_db)):
    lot = resolve_lot(db, body.lot_id)
    vehicle_type = resolve_vehicle_type(db, body.vehicle_type_id, body.vehicle_type_code)
    return quote_price(db, lot.id, vehicle_type.id, body.drop_off_time, body.pick_up_time)
