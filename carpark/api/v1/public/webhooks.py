import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from carpark.db.session import get_db
from carpark.core.config import settings
from carpark.services import email
from carpark.services.app_settings import SEND_BOOKING_CONFIRMATION, get_setting
from carpark.services.payments import handle_webhook_event, verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


@router.post("/rapyd")
async def rapyd_webhook(request: Request, db: Session = Depends(get_db)):
    """Payment gateway callbacks. Configure this URL in the Rapyd dashboard."""
    raw = (await request.body()).decode()
    if settings.RAPYD_VERIFY_WEBHOOKS:
        valid = verify_webhook_signature(
            "post",
            settings.RAPYD_WEBHOOK_PATH,
            request.headers.get("salt", ""),
            request.headers.get("timestamp", ""),
            raw,
            request.headers.get("signature", ""),
        )
        if not valid:
            logger.error("Invalid webhook signature")
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        event = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body")

    confirmed = handle_webhook_event(db, event)
    email_sent = None
    if confirmed is not None and get_setting(db, SEND_BOOKING_CONFIRMATION):
        email_sent = email.send_booking_confirmation(confirmed)
    return {"success": True, "email_sent": email_sent}
