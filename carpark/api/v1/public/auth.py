from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import EmailStr
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.core.config import settings
from carpark.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)

from carpark.api.deps import get_current_user
from carpark.models.user import User, UserRole
from carpark.schemas.user import (
    UserCreate, AdminCreate, Token, RefreshRequest, EmailCheck, User as UserSchema,
)
from carpark.schemas.common import MessageResponse

router = APIRouter(prefix="/auth", tags=["auth"])


def _build_token_response(user: User) -> Token:
    access_token = create_access_token(subject=str(user.id), role=user.role.value)
    refresh_token = create_refresh_token(subject=str(user.id))
    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=UserSchema.model_validate(user),
    )


def _register(body: UserCreate, role: UserRole, db: Session) -> User:
    email = body.email.lower()
    user = db.query(User).filter(User.email == email).first()
    if user and user.password_hash:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )
    if user is None:
        # Guests who booked before get their account claimed instead
        user = User(email=email)
        db.add(user)
    user.password_hash = get_password_hash(body.password)
    user.full_name = body.full_name
    user.phone = body.phone
    user.locale = body.locale
    user.role = role
    db.commit()
    db.refresh(user)
    return user


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(body: UserCreate, db: Session = Depends(get_db)):
    return _build_token_response(_register(body, UserRole.CUSTOMER, db))


@router.post("/admin/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def admin_register(body: AdminCreate, db: Session = Depends(get_db)):
    if body.admin_secret != settings.ADMIN_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin secret",
        )
    return _build_token_response(_register(body, UserRole.ADMIN, db))


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == form_data.username.lower()).first()
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return _build_token_response(user)


@router.post("/refresh", response_model=Token)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    subject = decode_token(body.refresh_token, expected_type="refresh")
    try:
        user = db.get(User, UUID(subject)) if subject else None
    except ValueError:
        user = None
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _build_token_response(user)


@router.get("/check-email", response_model=EmailCheck)
def check_email(email: EmailStr = Query(...), db: Session = Depends(get_db)):
    """Lets the checkout form offer sign-in to returning customers."""
    user = db.query(User).filter(User.email == email.lower()).first()
    return EmailCheck(exists=user is not None, has_password=bool(user and user.password_hash))


@router.post("/logout", response_model=MessageResponse)
def logout(current_user: User = Depends(get_current_user)):
    """
    Logout the current user.
    Since we are using stateless JWTs, the client should discard the token.
    """
    return {"message": "Successfully logged out"}
