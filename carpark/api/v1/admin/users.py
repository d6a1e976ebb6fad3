from uuid import UUID
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.core.exceptions import Conflict, NotFound
from carpark.models.user import User, UserRole
from carpark.schemas.user import AdminUserUpdate, User as UserSchema
from carpark.schemas.common import PaginatedResponse

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])


@router.get("/", response_model=PaginatedResponse[UserSchema])
def list_users(
    role: Optional[UserRole] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if search:
        query = query.filter(or_(User.email.ilike(f"%{search}%"), User.full_name.ilike(f"%{search}%")))

    total = query.count()
    users = query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return PaginatedResponse(
        data=users,
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.patch("/{user_id}", response_model=UserSchema)
def update_user(
    user_id: UUID,
    data: AdminUserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    """Change a user's role or (de)activate the account."""
    user = db.get(User, user_id)
    if not user:
        raise NotFound("User not found")
    if user.id == current_user.id and (data.role not in (None, UserRole.ADMIN) or data.is_active is False):
        raise Conflict("You cannot demote or deactivate yourself")
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user
