from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, UUID4, Field
from datetime import datetime

from carpark.models.user import UserRole

Locale = Literal["is", "en"]


# Shared properties
class UserBase(BaseModel):
    email: EmailStr
    full_name: str
    phone: Optional[str] = None
    locale: Locale = "is"


# Properties to receive via API on creation (POST /auth/register)
class UserCreate(UserBase):
    password: str = Field(min_length=8)


# Properties to receive via API on admin creation (POST /auth/admin/register)
class AdminCreate(UserCreate):
    admin_secret: str


# Properties to receive via API on update (PATCH /me)
class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    locale: Optional[Locale] = None


# Admin-only changes (PATCH /admin/users/{id})
class AdminUserUpdate(BaseModel):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserInDBBase(UserBase):
    id: UUID4
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Properties returned via API
class User(UserInDBBase):
    pass


# Compact user for nested responses (operator booking view)
class UserSummary(BaseModel):
    id: UUID4
    full_name: str
    email: str
    phone: Optional[str] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: User


class RefreshRequest(BaseModel):
    refresh_token: str


class EmailCheck(BaseModel):
    exists: bool
    has_password: bool
