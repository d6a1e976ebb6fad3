"""
Temporary spot holds for open checkout sessions.

A hold counts against lot capacity until ``expires_at``. Expiry is evaluated
lazily in every query, so correctness never depends on the background sweep;
``purge_expired`` only keeps the table small.

The availability check and the write of the hold run in one transaction that
starts by locking the lot row (``SELECT ... FOR UPDATE``). Two sessions racing
for the last spot of a lot therefore serialize: the second one sees the first
one's hold and fails with ``NoSpotsAvailable``.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from carpark.core.config import settings
from carpark.core.exceptions import InvalidInput, NoSpotsAvailable, NotFound
from carpark.models.booking import Booking, BookingStatus, SpotReservation
from carpark.models.lot import Lot
from carpark.services.availability import OCCUPYING_STATUSES, available_spaces
from carpark.utils.clock import as_utc, utcnow

logger = logging.getLogger(__name__)

# Unpaid bookings hold their spot too
HOLDING_STATUSES = (BookingStatus.PENDING,) + OCCUPYING_STATUSES


@dataclass
class HeldSpot:
    reservation: SpotReservation
    remaining_seconds: int


class SpotReservationStore:
    def __init__(
        self,
        db: Session,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.ttl = ttl or timedelta(minutes=settings.RESERVATION_TTL_MINUTES)
        self.clock = clock

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lock_lot(self, lot_id: UUID) -> Lot:
        lot = (
            self.db.query(Lot)
            .filter(Lot.id == lot_id, Lot.is_active == True)  # noqa: E712
            .with_for_update()
            .first()
        )
        if not lot:
            raise NotFound("Lot not found or inactive")
        return lot

    def available_spots(
        self,
        lot: Lot,
        start: datetime,
        end: datetime,
        exclude_session: Optional[str] = None,
    ) -> int:
        """Capacity left for [start, end) after bookings and other live holds."""
        now = self.clock()
        booked = (
            self.db.query(func.count(Booking.id))
            .filter(
                Booking.lot_id == lot.id,
                Booking.status.in_(HOLDING_STATUSES),
                Booking.drop_off_time < end,
                Booking.pick_up_time > start,
            )
            .scalar()
        ) or 0

        held_query = self.db.query(func.count(SpotReservation.id)).filter(
            SpotReservation.lot_id == lot.id,
            SpotReservation.expires_at > now,
            SpotReservation.start_date < end,
            SpotReservation.end_date > start,
        )
        if exclude_session:
            held_query = held_query.filter(SpotReservation.session_id != exclude_session)
        held = held_query.scalar() or 0

        return available_spaces(lot.total_spaces, booked + held)

    def remaining_seconds(self, reservation: SpotReservation) -> int:
        delta = as_utc(reservation.expires_at) - self.clock()
        return max(0, int(delta.total_seconds()))

    def get(self, session_id: str) -> Optional[HeldSpot]:
        reservation = self._find(session_id)
        if reservation is None or as_utc(reservation.expires_at) <= self.clock():
            return None
        return HeldSpot(reservation, self.remaining_seconds(reservation))

    def _find(self, session_id: str) -> Optional[SpotReservation]:
        return (
            self.db.query(SpotReservation)
            .filter(SpotReservation.session_id == session_id)
            .first()
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def reserve(
        self,
        session_id: str,
        lot_id: UUID,
        start: datetime,
        end: datetime,
        user_id: Optional[UUID] = None,
        booking_data: Optional[dict] = None,
    ) -> HeldSpot:
        """Create or replace the session's hold with a fresh expiry."""
        start, end = as_utc(start), as_utc(end)
        if end <= start:
            raise InvalidInput("End date must be after start date")

        lot = self.lock_lot(lot_id)
        if self.available_spots(lot, start, end, exclude_session=session_id) <= 0:
            # Drop the row lock before reporting
            self.db.rollback()
            raise NoSpotsAvailable()

        reservation = self._find(session_id)
        if reservation is None:
            reservation = SpotReservation(session_id=session_id)
            self.db.add(reservation)
        elif booking_data is None:
            booking_data = reservation.booking_data

        reservation.lot_id = lot.id
        reservation.start_date = start
        reservation.end_date = end
        reservation.user_id = user_id or reservation.user_id
        reservation.booking_data = booking_data
        reservation.expires_at = self.clock() + self.ttl
        self.db.commit()
        self.db.refresh(reservation)

        logger.info("Spot held for session %s at lot %s until %s", session_id, lot.id, reservation.expires_at)
        return HeldSpot(reservation, self.remaining_seconds(reservation))

    def extend(self, session_id: str) -> HeldSpot:
        """Re-run ``reserve`` with the stored lot and range.

        Availability is checked again: if the hold lapsed and someone else took
        the last spot meanwhile, this raises ``NoSpotsAvailable``.
        """
        reservation = self._find(session_id)
        if reservation is None:
            raise NotFound("Reservation not found")
        return self.reserve(
            session_id,
            reservation.lot_id,
            reservation.start_date,
            reservation.end_date,
            user_id=reservation.user_id,
        )

    def release(self, session_id: str) -> bool:
        deleted = (
            self.db.query(SpotReservation)
            .filter(SpotReservation.session_id == session_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return bool(deleted)

    def owned_session(self, session_id: Optional[str], user_id: Optional[UUID]) -> Optional[str]:
        """
        The session id if the caller may book against its hold, else None.

        A hold made while signed in belongs to that account. An anonymous hold
        belongs to whoever presents its session id.
        """
        if not session_id:
            return None
        reservation = self._find(session_id)
        if reservation is None:
            return None
        if reservation.user_id is not None and reservation.user_id != user_id:
            logger.warning("Session %s belongs to another account, hold not used", session_id)
            return None
        return session_id

    def consume(self, session_id: Optional[str]) -> None:
        """Drop the hold as part of the caller's transaction (booking creation)."""
        if not session_id:
            return
        self.db.query(SpotReservation).filter(
            SpotReservation.session_id == session_id
        ).delete(synchronize_session=False)

    def purge_expired(self) -> int:
        count = (
            self.db.query(SpotReservation)
            .filter(SpotReservation.expires_at <= self.clock())
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return count
