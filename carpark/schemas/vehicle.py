from typing import Optional
from pydantic import BaseModel, UUID4, Field

from carpark.schemas.lot import VehicleType


# Registry lookup result (GET /vehicles/lookup)
class VehicleLookup(BaseModel):
    license_plate: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    fuel_type: Optional[str] = None
    mass_kg: Optional[int] = None
    is_electric: bool = False
    vehicle_type_code: str
    vehicle_type: Optional[VehicleType] = None
    source: str  # registry, mock


class VehicleInfo(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    is_electric: Optional[bool] = None


class VehicleCreate(VehicleInfo):
    license_plate: str = Field(min_length=2, max_length=10)
    vehicle_type_id: UUID4


class Vehicle(BaseModel):
    id: UUID4
    license_plate: str
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    is_electric: bool = False
    vehicle_type: Optional[VehicleType] = None

    class Config:
        from_attributes = True
