"""
Booking status state machine.

    PENDING -> CONFIRMED -> CHECKED_IN -> IN_PROGRESS -> READY -> CHECKED_OUT

Staff may move a booking forward along the chain, skipping steps (a car with
no addons goes straight from CHECKED_IN to CHECKED_OUT), but never backwards.
CANCELLED and NO_SHOW can be reached from every non-terminal status.
CHECKED_OUT, CANCELLED and NO_SHOW are terminal.

Functions here mutate ORM objects and leave committing to the caller.
"""
import logging
from datetime import datetime
from typing import FrozenSet, Optional

from sqlalchemy.orm import Session

from carpark.core.exceptions import CannotCancel, InvalidStatusTransition
from carpark.models.booking import AddonStatus, Booking, BookingAddon, BookingStatus
from carpark.services.events import AddonStatusChanged, event_bus
from carpark.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

FORWARD_CHAIN = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
    BookingStatus.IN_PROGRESS,
    BookingStatus.READY,
    BookingStatus.CHECKED_OUT,
)
TERMINAL_STATUSES = frozenset(
    {BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
)
DONE_ADDON_STATUSES = frozenset({AddonStatus.COMPLETED, AddonStatus.SKIPPED})


def allowed_transitions(current: BookingStatus) -> FrozenSet[BookingStatus]:
    if current in TERMINAL_STATUSES:
        return frozenset()
    later = FORWARD_CHAIN[FORWARD_CHAIN.index(current) + 1:]
    return frozenset(later) | {BookingStatus.CANCELLED, BookingStatus.NO_SHOW}


def transition(booking: Booking, target: BookingStatus, now: Optional[datetime] = None) -> Booking:
    current = BookingStatus(booking.status)
    if target not in allowed_transitions(current):
        raise InvalidStatusTransition(
            f"Cannot change booking {booking.reference} from {current.value} to {target.value}"
        )
    now = now or utcnow()
    booking.status = target
    if target == BookingStatus.CHECKED_IN:
        booking.actual_drop_off = now
    elif target == BookingStatus.CHECKED_OUT:
        booking.actual_pick_up = now
    elif target == BookingStatus.CANCELLED:
        booking.cancelled_at = now
    logger.info("Booking %s: %s -> %s", booking.reference, current.value, target.value)
    return booking


def ensure_customer_can_cancel(booking: Booking, now: Optional[datetime] = None) -> None:
    now = now or utcnow()
    if booking.status in TERMINAL_STATUSES:
        raise CannotCancel("This booking cannot be cancelled")
    if as_utc(booking.drop_off_time) <= now:
        raise CannotCancel("Cannot cancel a booking that has already started")


def cancel_by_customer(booking: Booking, now: Optional[datetime] = None) -> Booking:
    now = now or utcnow()
    ensure_customer_can_cancel(booking, now)
    return transition(booking, BookingStatus.CANCELLED, now)


# ---------------------------------------------------------------------------
# Addons
# ---------------------------------------------------------------------------


def set_addon_status(
    db: Session,
    addon: BookingAddon,
    status: AddonStatus,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> BookingAddon:
    addon.status = status
    if status == AddonStatus.COMPLETED:
        addon.completed_at = now or utcnow()
    if notes is not None:
        addon.notes = notes
    db.flush()
    event_bus.publish(
        AddonStatusChanged(booking_id=addon.booking_id, addon_id=addon.id, status=status),
        db,
    )
    return addon


def advance_when_addons_done(event: AddonStatusChanged, db: Session) -> None:
    """IN_PROGRESS -> READY once every addon is completed or skipped."""
    if event.status not in DONE_ADDON_STATUSES:
        return
    booking = db.get(Booking, event.booking_id)
    if booking is None or booking.status != BookingStatus.IN_PROGRESS:
        return
    if all(a.status in DONE_ADDON_STATUSES for a in booking.addons):
        transition(booking, BookingStatus.READY)


event_bus.subscribe(AddonStatusChanged, advance_when_addons_done)
