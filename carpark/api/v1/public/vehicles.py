from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.core.config import settings
from carpark.core.exceptions import InvalidInput, NotFound
from carpark.core.rate_limit import RateLimiter
from carpark.models.lot import VehicleType
from carpark.schemas.vehicle import VehicleLookup
from carpark.services.vehicle_registry import lookup_with_fallback
from carpark.utils.references import is_valid_license_plate, normalize_license_plate

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.get(
    "/lookup",
    response_model=VehicleLookup,
    dependencies=[Depends(RateLimiter("vehicle_lookup", settings.RATE_LIMIT_VEHICLE_LOOKUPS))],
)
def lookup_vehicle(plate: str = Query(..., min_length=2, max_length=12), db: Session = Depends(get_db)):
    """
    Registry lookup by licence plate. The size category decides the price
    tier. Falls back to mock data when the registry is down.
    """
    normalized = normalize_license_plate(plate)
    if not is_valid_license_plate(normalized):
        raise InvalidInput("Invalid license plate")

    record, source = lookup_with_fallback(normalized)
    if record is None:
        raise NotFound("Vehicle not found")

    vehicle_type = db.query(VehicleType).filter(VehicleType.code == record.vehicle_type_code).first()
    return VehicleLookup(**record.to_dict(), vehicle_type=vehicle_type, source=source)
