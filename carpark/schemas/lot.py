from typing import Optional
from pydantic import BaseModel, UUID4, Field
from datetime import datetime


# Vehicle types
class VehicleTypeBase(BaseModel):
    code: str = Field(min_length=1, max_length=20)
    name: str
    name_en: Optional[str] = None
    sort_order: int = 0


class VehicleTypeCreate(VehicleTypeBase):
    pass


class VehicleTypeUpdate(BaseModel):
    name: Optional[str] = None
    name_en: Optional[str] = None
    sort_order: Optional[int] = None


class VehicleType(VehicleTypeBase):
    id: UUID4

    class Config:
        from_attributes = True


# Lots
class LotBase(BaseModel):
    name: str
    name_en: Optional[str] = None
    instructions: Optional[str] = None
    instructions_en: Optional[str] = None
    total_spaces: int = Field(ge=0)


class LotCreate(LotBase):
    slug: Optional[str] = None


class LotUpdate(BaseModel):
    name: Optional[str] = None
    name_en: Optional[str] = None
    instructions: Optional[str] = None
    instructions_en: Optional[str] = None
    total_spaces: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class Lot(LotBase):
    id: UUID4
    slug: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Public listing: capacity snapshot at request time
class LotWithAvailability(Lot):
    available_spaces: int


class LotSummary(BaseModel):
    id: UUID4
    name: str
    name_en: Optional[str] = None
    slug: str

    class Config:
        from_attributes = True
