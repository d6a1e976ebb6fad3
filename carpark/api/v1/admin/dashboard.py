from uuid import UUID
from typing import Optional
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.api.v1.operator.dashboard import build_dashboard
from carpark.models.user import User
from carpark.schemas.common import DashboardStats

router = APIRouter(prefix="/admin/dashboard", tags=["Admin - Dashboard"])


@router.get("/", response_model=DashboardStats)
def admin_dashboard(
    lot_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return build_dashboard(db, datetime.now(timezone.utc).date(), lot_id)
