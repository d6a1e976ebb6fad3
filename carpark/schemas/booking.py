from __future__ import annotations

from typing import Annotated, Optional, List, Literal
from pydantic import BaseModel, EmailStr, Field, UUID4, field_validator, model_validator
from datetime import datetime

from carpark.models.booking import AddonStatus, BookingStatus
from carpark.schemas.lot import LotSummary
from carpark.schemas.vehicle import Vehicle, VehicleInfo
from carpark.utils.clock import as_utc


# Booking: Create (POST /bookings)
class BookingCreate(BaseModel):
    license_plate: str = Field(min_length=2, max_length=10)
    vehicle_type_id: Optional[UUID4] = None
    vehicle_type_code: Optional[str] = None
    lot_id: Optional[UUID4] = None
    session_id: Optional[str] = None  # spot hold taken at checkout, consumed on success
    drop_off_time: datetime
    pick_up_time: datetime
    departure_flight_number: Optional[str] = None
    departure_flight_time: Optional[datetime] = None
    arrival_flight_number: Optional[str] = None
    arrival_flight_time: Optional[datetime] = None
    addon_service_ids: Annotated[List[UUID4], Field(max_length=20)] = []
    notes: Optional[str] = None
    locale: Literal["is", "en"] = "is"
    # Guest contact (unauthenticated checkout)
    guest_name: Optional[str] = None
    guest_email: Optional[EmailStr] = None
    guest_phone: Optional[str] = None
    vehicle_info: Optional[VehicleInfo] = None

    @field_validator("lot_id", "vehicle_type_id", "departure_flight_time", "arrival_flight_time", mode="before")
    @classmethod
    def parse_empty_str_to_none(cls, v):
        if v == "":
            return None
        return v

    @model_validator(mode="after")
    def check_times(self):
        if as_utc(self.pick_up_time) <= as_utc(self.drop_off_time):
            raise ValueError("pick_up_time must be after drop_off_time")
        if not self.vehicle_type_id and not self.vehicle_type_code:
            raise ValueError("vehicle_type_id or vehicle_type_code is required")
        return self


class AddonService(BaseModel):
    id: UUID4
    code: str
    name: str
    name_en: Optional[str] = None

    class Config:
        from_attributes = True


class BookingAddon(BaseModel):
    id: UUID4
    service_id: UUID4
    price: int
    status: AddonStatus
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    service: Optional[AddonService] = None

    class Config:
        from_attributes = True


# Booking: Full response (POST /bookings, GET /bookings/{reference})
class Booking(BaseModel):
    id: UUID4
    reference: str
    status: BookingStatus
    lot_id: UUID4
    drop_off_time: datetime
    pick_up_time: datetime
    actual_drop_off: Optional[datetime] = None
    actual_pick_up: Optional[datetime] = None
    departure_flight_number: Optional[str] = None
    departure_flight_time: Optional[datetime] = None
    arrival_flight_number: Optional[str] = None
    arrival_flight_time: Optional[datetime] = None
    total_days: int
    base_price_per_day: int
    base_total: int
    discount_amount: int
    addons_total: int
    total_price: int
    spot_number: Optional[str] = None
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    lot: Optional[LotSummary] = None
    vehicle: Optional[Vehicle] = None
    addons: List[BookingAddon] = []

    class Config:
        from_attributes = True


# Booking: Cancel response (POST /bookings/{reference}/cancel)
class BookingCancelResponse(BaseModel):
    id: UUID4
    reference: str
    status: BookingStatus
    cancelled_at: datetime
    email_sent: bool


# Booking: Operator/admin view, includes customer and internal notes
class AdminBooking(Booking):
    user: Optional[UserSummary] = None
    guest_name: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    internal_notes: Optional[str] = None

    class Config:
        from_attributes = True


# PATCH /operator/bookings/{id}
class BookingStatusUpdate(BaseModel):
    status: Optional[BookingStatus] = None
    spot_number: Optional[str] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class BookingUpdateResponse(BaseModel):
    booking: AdminBooking
    email_sent: Optional[bool] = None


# PATCH /operator/bookings/{id}/addons/{addon_id}
class AddonStatusUpdate(BaseModel):
    status: AddonStatus
    notes: Optional[str] = None


class AddonUpdateResponse(BaseModel):
    addon: BookingAddon
    booking_status: BookingStatus


class EmailSendResponse(BaseModel):
    email_sent: bool


# Import at the bottom to avoid circular imports
from carpark.schemas.user import UserSummary  # noqa: E402

AdminBooking.model_rebuild()
BookingUpdateResponse.model_rebuild()
