from typing import Optional
from pydantic import BaseModel, UUID4, Field, model_validator
from datetime import datetime

from carpark.schemas.lot import VehicleType


class PricingBase(BaseModel):
    price_per_day: int = Field(ge=0)
    weekly_discount: Optional[int] = Field(default=None, ge=0, le=100)
    monthly_discount: Optional[int] = Field(default=None, ge=0, le=100)


class PricingCreate(PricingBase):
    lot_id: UUID4
    vehicle_type_id: UUID4


class PricingUpdate(BaseModel):
    price_per_day: Optional[int] = Field(default=None, ge=0)
    weekly_discount: Optional[int] = Field(default=None, ge=0, le=100)
    monthly_discount: Optional[int] = Field(default=None, ge=0, le=100)
    is_active: Optional[bool] = None


class Pricing(PricingBase):
    id: UUID4
    lot_id: UUID4
    vehicle_type_id: UUID4
    is_active: bool
    vehicle_type: Optional[VehicleType] = None

    class Config:
        from_attributes = True


# POST /pricing/quote
class QuoteRequest(BaseModel):
    lot_id: Optional[UUID4] = None
    vehicle_type_id: Optional[UUID4] = None
    vehicle_type_code: Optional[str] = None
    drop_off_time: datetime
    pick_up_time: datetime

    @model_validator(mode="after")
    def check_vehicle_type(self):
        if not self.vehicle_type_id and not self.vehicle_type_code:
            raise ValueError("vehicle_type_id or vehicle_type_code is required")
        return self


class PriceQuote(BaseModel):
    total_days: int
    price_per_day: int
    base_price: int
    discount_percent: int
    discount_amount: int
    total_price: int

    class Config:
        from_attributes = True


# POST /admin/pricing/calculate: what-if calculator, no stored pricing needed
class PriceCalculation(PricingBase):
    drop_off_time: datetime
    pick_up_time: datetime
