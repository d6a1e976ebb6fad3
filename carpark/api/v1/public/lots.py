from uuid import UUID
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.core.exceptions import NotFound
from carpark.models.lot import Lot
from carpark.schemas.lot import LotWithAvailability
from carpark.services.availability import lot_available_spaces

router = APIRouter(prefix="/lots", tags=["Lots"])


def _with_availability(db: Session, lot: Lot) -> LotWithAvailability:
    return LotWithAvailability(
        id=lot.id,
        name=lot.name,
        name_en=lot.name_en,
        slug=lot.slug,
        instructions=lot.instructions,
        instructions_en=lot.instructions_en,
        total_spaces=lot.total_spaces,
        is_active=lot.is_active,
        created_at=lot.created_at,
        available_spaces=lot_available_spaces(db, lot),
    )


@router.get("/", response_model=List[LotWithAvailability])
def list_lots(db: Session = Depends(get_db)):
    """Active lots with a live snapshot of free spaces."""
    lots = db.query(Lot).filter(Lot.is_active == True).order_by(Lot.name).all()  # noqa: E712
    return [_with_availability(db, lot) for lot in lots]


@router.get("/{lot_ref}", response_model=LotWithAvailability)
def get_lot(lot_ref: str, db: Session = Depends(get_db)):
    """Look a lot up by id or slug."""
    query = db.query(Lot).filter(Lot.is_active == True)  # noqa: E712
    try:
        lot = query.filter(Lot.id == UUID(lot_ref)).first()
    except ValueError:
        lot = query.filter(Lot.slug == lot_ref).first()
    if not lot:
        raise NotFound("Lot not found")
    return _with_availability(db, lot)
