from typing import Optional, List
from pydantic import BaseModel, UUID4, Field


class ServiceCategory(BaseModel):
    id: UUID4
    code: str
    name: str
    name_en: Optional[str] = None
    icon: Optional[str] = None
    sort_order: int = 0

    class Config:
        from_attributes = True


class ServiceCategoryCreate(BaseModel):
    code: str
    name: str
    name_en: Optional[str] = None
    icon: Optional[str] = None
    sort_order: int = 0


class ServiceBase(BaseModel):
    code: str
    name: str
    name_en: Optional[str] = None
    description: Optional[str] = None
    description_en: Optional[str] = None
    category_id: Optional[UUID4] = None
    sort_order: int = 0


class ServiceCreate(ServiceBase):
    pass


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    name_en: Optional[str] = None
    description: Optional[str] = None
    description_en: Optional[str] = None
    category_id: Optional[UUID4] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class Service(ServiceBase):
    id: UUID4
    is_active: bool

    class Config:
        from_attributes = True


# Price of a service at one lot for one vehicle type
class LotServicePrice(BaseModel):
    lot_id: UUID4
    vehicle_type_id: UUID4
    price: int = Field(ge=0)
    is_available: bool = True


class LotServicePriceOut(LotServicePrice):
    id: UUID4
    service_id: UUID4

    class Config:
        from_attributes = True


# Public catalog: services offered at a lot with the price for a vehicle type
class ServiceOffer(BaseModel):
    service: Service
    price: int


class CategoryWithOffers(BaseModel):
    category: Optional[ServiceCategory] = None
    offers: List[ServiceOffer] = []
