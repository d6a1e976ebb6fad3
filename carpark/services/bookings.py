"""
Booking creation and staff updates.

Prices are always computed here from the active ``LotPricing`` row; amounts
sent by the client are never trusted.
"""
import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session, joinedload

from carpark.core.exceptions import InvalidInput, NoSpotsAvailable, NotFound
from carpark.models.booking import AddonStatus, Booking, BookingAddon, BookingStatus
from carpark.models.lot import Lot, VehicleType
from carpark.models.service import LotService, Service
from carpark.models.user import User
from carpark.models.vehicle import Vehicle
from carpark.schemas.booking import BookingCreate, BookingStatusUpdate
from carpark.services import email
from carpark.services.lifecycle import transition
from carpark.services.pricing import quote_price
from carpark.services.reservations import SpotReservationStore
from carpark.utils.clock import as_utc, utcnow
from carpark.utils.references import (
    generate_booking_reference,
    is_valid_license_plate,
    normalize_license_plate,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def booking_query(db: Session):
    return db.query(Booking).options(
        joinedload(Booking.lot),
        joinedload(Booking.user),
        joinedload(Booking.vehicle).joinedload(Vehicle.vehicle_type),
        joinedload(Booking.addons).joinedload(BookingAddon.service),
        joinedload(Booking.payment),
    )


def get_booking(db: Session, booking_id: UUID) -> Booking:
    booking = booking_query(db).filter(Booking.id == booking_id).first()
    if not booking:
        raise NotFound("Booking not found")
    return booking


def get_booking_by_reference(db: Session, reference: str) -> Booking:
    booking = booking_query(db).filter(Booking.reference == reference.strip().upper()).first()
    if not booking:
        raise NotFound("Booking not found")
    return booking


def resolve_lot(db: Session, lot_id: Optional[UUID]) -> Lot:
    query = db.query(Lot).filter(Lot.is_active == True)  # noqa: E712
    lot = query.filter(Lot.id == lot_id).first() if lot_id else query.order_by(Lot.created_at).first()
    if not lot:
        raise NotFound("Lot not found or inactive")
    return lot


def resolve_vehicle_type(db: Session, vehicle_type_id: Optional[UUID], code: Optional[str]) -> VehicleType:
    query = db.query(VehicleType)
    if vehicle_type_id:
        vehicle_type = query.filter(VehicleType.id == vehicle_type_id).first()
    else:
        vehicle_type = query.filter(VehicleType.code == (code or "").lower()).first()
    if not vehicle_type:
        raise NotFound("Vehicle type not found")
    return vehicle_type


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


def _resolve_customer(db: Session, data: BookingCreate, current_user: Optional[User]) -> User:
    if current_user is not None:
        current_user.locale = data.locale
        return current_user
    if not data.guest_email:
        raise InvalidInput("guest_email is required when not signed in")

    email_address = data.guest_email.lower()
    user = db.query(User).filter(User.email == email_address).first()
    if user:
        user.full_name = data.guest_name or user.full_name
        user.phone = data.guest_phone or user.phone
        user.locale = data.locale
        return user

    user = User(
        email=email_address,
        full_name=data.guest_name or "Guest",
        phone=data.guest_phone,
        locale=data.locale,
    )
    db.add(user)
    db.flush()
    return user


def _resolve_vehicle(db: Session, data: BookingCreate, vehicle_type: VehicleType, owner: User) -> Vehicle:
    plate = normalize_license_plate(data.license_plate)
    if not is_valid_license_plate(plate):
        raise InvalidInput("Invalid license plate")

    vehicle = db.query(Vehicle).filter(Vehicle.license_plate == plate).first()
    info = data.vehicle_info
    if vehicle is None:
        vehicle = Vehicle(
            license_plate=plate,
            vehicle_type_id=vehicle_type.id,
            owner_id=owner.id,
            make=info.make if info else None,
            model=info.model if info else None,
            year=info.year if info else None,
            color=info.color if info else None,
            is_electric=bool(info and info.is_electric),
        )
        db.add(vehicle)
        db.flush()
    elif vehicle.owner_id is None:
        vehicle.owner_id = owner.id
    return vehicle


def _price_addons(
    db: Session, lot: Lot, vehicle_type: VehicleType, service_ids: List[UUID]
) -> List[Tuple[Service, int]]:
    if not service_ids:
        return []
    offers = (
        db.query(LotService)
        .options(joinedload(LotService.service))
        .filter(
            LotService.lot_id == lot.id,
            LotService.vehicle_type_id == vehicle_type.id,
            LotService.service_id.in_(service_ids),
            LotService.is_available == True,  # noqa: E712
        )
        .all()
    )
    priced = {o.service_id: o for o in offers if o.service.is_active}
    missing = [str(s) for s in service_ids if s not in priced]
    if missing:
        raise InvalidInput(f"Services not available for this vehicle: {', '.join(missing)}")
    return [(priced[s].service, priced[s].price) for s in dict.fromkeys(service_ids)]


def create_booking(db: Session, data: BookingCreate, current_user: Optional[User] = None) -> Booking:
    """
    Create a PENDING booking and consume the caller's spot hold.

    Capacity is checked again under the lot row lock, excluding the caller's
    own hold, so a booking can never push held + booked past capacity.
    """
    drop_off, pick_up = as_utc(data.drop_off_time), as_utc(data.pick_up_time)
    now = utcnow()
    if drop_off <= now:
        raise InvalidInput("Drop-off time must be in the future")

    store = SpotReservationStore(db)
    lot = resolve_lot(db, data.lot_id)
    lot = store.lock_lot(lot.id)
    vehicle_type = resolve_vehicle_type(db, data.vehicle_type_id, data.vehicle_type_code)
    quote = quote_price(db, lot.id, vehicle_type.id, drop_off, pick_up)
    addons = _price_addons(db, lot, vehicle_type, data.addon_service_ids)
    session_id = store.owned_session(data.session_id, current_user.id if current_user else None)

    if store.available_spots(lot, drop_off, pick_up, exclude_session=session_id) <= 0:
        db.rollback()
        raise NoSpotsAvailable()

    customer = _resolve_customer(db, data, current_user)
    vehicle = _resolve_vehicle(db, data, vehicle_type, customer)
    addons_total = sum(price for _, price in addons)

    booking = Booking(
        reference=generate_booking_reference(db, now),
        user_id=customer.id,
        vehicle_id=vehicle.id,
        lot_id=lot.id,
        status=BookingStatus.PENDING,
        guest_name=data.guest_name if current_user is None else None,
        guest_email=data.guest_email.lower() if current_user is None and data.guest_email else None,
        guest_phone=data.guest_phone if current_user is None else None,
        departure_flight_number=(data.departure_flight_number or "").upper() or None,
        departure_flight_time=as_utc(data.departure_flight_time),
        arrival_flight_number=(data.arrival_flight_number or "").upper() or None,
        arrival_flight_time=as_utc(data.arrival_flight_time),
        drop_off_time=drop_off,
        pick_up_time=pick_up,
        total_days=quote.total_days,
        base_price_per_day=quote.price_per_day,
        base_total=quote.base_price,
        discount_amount=quote.discount_amount,
        addons_total=addons_total,
        total_price=quote.total_price + addons_total,
        notes=data.notes,
    )
    booking.addons = [
        BookingAddon(service_id=service.id, price=price, status=AddonStatus.PENDING)
        for service, price in addons
    ]
    db.add(booking)
    store.consume(session_id)
    db.commit()

    logger.info(
        "Booking %s created: lot %s, %d day(s), %d ISK",
        booking.reference, lot.id, booking.total_days, booking.total_price,
    )
    return get_booking(db, booking.id)


# ---------------------------------------------------------------------------
# Staff updates
# ---------------------------------------------------------------------------


def apply_staff_update(db: Session, booking: Booking, data: BookingStatusUpdate) -> Optional[bool]:
    """
    Apply an operator update and commit. Returns whether a check-in email
    was sent, or None when the update did not check the car in.
    """
    previous = booking.status
    if data.status is not None and data.status != booking.status:
        transition(booking, data.status)
    for field in ("spot_number", "notes", "internal_notes"):
        value = getattr(data, field)
        if value is not None:
            setattr(booking, field, value)
    db.commit()
    db.refresh(booking)

    if booking.status == BookingStatus.CHECKED_IN and previous != BookingStatus.CHECKED_IN:
        return email.send_check_in_confirmation(booking)
    if booking.status == BookingStatus.CANCELLED and previous != BookingStatus.CANCELLED:
        return email.send_booking_cancellation(booking)
    return None
