from typing import Any, Dict
from pydantic import BaseModel, EmailStr

from carpark.schemas.user import Locale


class SettingsUpdate(BaseModel):
    values: Dict[str, Any]


class SettingsResponse(BaseModel):
    values: Dict[str, Any]


class TestEmailRequest(BaseModel):
    to: EmailStr
    locale: Locale = "is"
