from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_user_optional
from carpark.models.user import User
from carpark.schemas.reservation import (
    Reservation,
    ReservationCreate,
    ReservationReleaseResponse,
    ReservationStatus,
)
from carpark.services.bookings import resolve_lot
from carpark.services.reservations import HeldSpot, SpotReservationStore
from carpark.utils.clock import as_utc

router = APIRouter(prefix="/reservations", tags=["Reservations"])


def _serialize(held: HeldSpot) -> Reservation:
    r = held.reservation
    return Reservation(
        session_id=r.session_id,
        lot_id=r.lot_id,
        start_date=as_utc(r.start_date),
        end_date=as_utc(r.end_date),
        expires_at=as_utc(r.expires_at),
        remaining_seconds=held.remaining_seconds,
        booking_data=r.booking_data,
    )


@router.post("/", response_model=Reservation, status_code=status.HTTP_201_CREATED)
def reserve_spot(
    body: ReservationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user_optional),
):
    """
    Hold one space for the checkout session. Calling again with the same
    session replaces its hold. 409 `no_spots_available` when the lot is full
    for any part of the range.
    """
    lot = resolve_lot(db, body.lot_id)
    held = SpotReservationStore(db).reserve(
        body.session_id,
        lot.id,
        body.start_date,
        body.end_date,
        user_id=current_user.id if current_user else None,
        booking_data=body.booking_data,
    )
    return _serialize(held)


@router.get("/{session_id}", response_model=ReservationStatus)
def get_reservation(session_id: str, db: Session = Depends(get_db)):
    held = SpotReservationStore(db).get(session_id)
    if held is None:
        return ReservationStatus(active=False)
    return ReservationStatus(active=True, reservation=_serialize(held))


@router.post("/{session_id}/extend", response_model=Reservation)
def extend_reservation(session_id: str, db: Session = Depends(get_db)):
    """Refresh the hold. Availability is re-checked, so this can fail with 409."""
    return _serialize(SpotReservationStore(db).extend(session_id))


@router.delete("/{session_id}", response_model=ReservationReleaseResponse)
def release_reservation(session_id: str, db: Session = Depends(get_db)):
    return ReservationReleaseResponse(released=SpotReservationStore(db).release(session_id))
