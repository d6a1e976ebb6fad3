"""
Parking price calculation.

All amounts are whole ISK. A stay is charged per started 24 hours with a
one-day minimum, then at most one discount tier is applied: the monthly
discount from 30 days, otherwise the weekly discount from 7 days.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from carpark.core.exceptions import InvalidInput, PricingNotFound
from carpark.models.lot import LotPricing
from carpark.utils.clock import as_utc

WEEKLY_THRESHOLD_DAYS = 7
MONTHLY_THRESHOLD_DAYS = 30


@dataclass(frozen=True)
class PriceQuote:
    total_days: int
    price_per_day: int
    base_price: int
    discount_percent: int
    discount_amount: int
    total_price: int


def count_days(drop_off: datetime, pick_up: datetime) -> int:
    hours = (pick_up - drop_off).total_seconds() / 3600
    return max(1, math.ceil(hours / 24))


def discount_percent_for(days: int, weekly: Optional[int], monthly: Optional[int]) -> int:
    if days >= MONTHLY_THRESHOLD_DAYS and monthly:
        return monthly
    if days >= WEEKLY_THRESHOLD_DAYS and weekly:
        return weekly
    return 0


def calculate_price(
    price_per_day: int,
    drop_off: datetime,
    pick_up: datetime,
    weekly_discount: Optional[int] = None,
    monthly_discount: Optional[int] = None,
) -> PriceQuote:
    days = count_days(drop_off, pick_up)
    base = days * price_per_day
    percent = discount_percent_for(days, weekly_discount, monthly_discount)
    # round() is banker's rounding; money rounds half up
    discount = math.floor(base * percent / 100 + 0.5)
    return PriceQuote(
        total_days=days,
        price_per_day=price_per_day,
        base_price=base,
        discount_percent=percent,
        discount_amount=discount,
        total_price=base - discount,
    )


def get_active_pricing(db: Session, lot_id: UUID, vehicle_type_id: UUID) -> LotPricing:
    pricing = (
        db.query(LotPricing)
        .filter(
            LotPricing.lot_id == lot_id,
            LotPricing.vehicle_type_id == vehicle_type_id,
            LotPricing.is_active == True,  # noqa: E712
        )
        .first()
    )
    if not pricing:
        raise PricingNotFound()
    return pricing


def quote_price(
    db: Session,
    lot_id: UUID,
    vehicle_type_id: UUID,
    drop_off: datetime,
    pick_up: datetime,
) -> PriceQuote:
    drop_off, pick_up = as_utc(drop_off), as_utc(pick_up)
    if pick_up <= drop_off:
        raise InvalidInput("Pick-up time must be after drop-off time")
    pricing = get_active_pricing(db, lot_id, vehicle_type_id)
    return calculate_price(
        pricing.price_per_day,
        drop_off,
        pick_up,
        weekly_discount=pricing.weekly_discount,
        monthly_discount=pricing.monthly_discount,
    )
