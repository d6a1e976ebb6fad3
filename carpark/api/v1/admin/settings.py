from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.api.deps import get_current_admin_user
from carpark.core.exceptions import InvalidInput
from carpark.models.user import User
from carpark.schemas.setting import SettingsResponse, SettingsUpdate, TestEmailRequest
from carpark.schemas.booking import EmailSendResponse
from carpark.services import app_settings
from carpark.services.email import send_test_email

router = APIRouter(prefix="/admin/settings", tags=["Admin - Settings"])


@router.get("/", response_model=SettingsResponse)
def get_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    return SettingsResponse(values=app_settings.all_settings(db))


@router.put("/", response_model=SettingsResponse)
def update_settings(
    data: SettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin_user),
):
    unknown = set(data.values) - set(app_settings.DEFAULTS)
    if unknown:
        raise InvalidInput(f"Unknown settings: {', '.join(sorted(unknown))}")
    for key, value in data.values.items():
        app_settings.set_setting(db, key, value)
    db.commit()
    return SettingsResponse(values=app_settings.all_settings(db))


@router.post("/test-email", response_model=EmailSendResponse)
def test_email(
    data: TestEmailRequest,
    current_user: User = Depends(get_current_admin_user),
):
    return EmailSendResponse(email_sent=send_test_email(data.to, data.locale))
