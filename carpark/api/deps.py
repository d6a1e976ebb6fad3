from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from carpark.core.config import settings
from carpark.core.security import decode_token
from carpark.db.session import get_db
from carpark.models.booking import Booking
from carpark.models.user import User, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login", auto_error=False
)


def _user_from_token(token: str, db: Session) -> Optional[User]:
    subject = decode_token(token)
    if subject is None:
        return None
    try:
        user_id = UUID(subject)
    except ValueError:
        return None
    return db.get(User, user_id)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    user = _user_from_token(token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")
    return user


def get_current_user_optional(
    token: Optional[str] = Depends(optional_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Guest checkout: a missing or invalid token means an anonymous caller."""
    if not token:
        return None
    user = _user_from_token(token, db)
    if user is None or not user.is_active:
        return None
    return user


def get_current_operator(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role not in (UserRole.OPERATOR, UserRole.ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operator access required")
    return current_user


def get_current_admin_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def ensure_booking_access(booking: Booking, current_user: Optional[User], email: Optional[str]) -> None:
    """
    A booking is visible to its owner, to staff, or to anyone who knows both
    the reference and the contact email used at checkout. Anything else is
    reported as not found.
    """
    if current_user is not None and (current_user.is_staff or current_user.id == booking.user_id):
        return
    if email:
        known = {e.lower() for e in (booking.guest_email, booking.user.email if booking.user else None) if e}
        if email.strip().lower() in known:
            return
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
