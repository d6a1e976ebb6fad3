"""Runtime switches stored in the ``settings`` table."""
from typing import Any, Dict

from sqlalchemy.orm import Session

from carpark.models.system import Setting

SEND_BOOKING_CONFIRMATION = "sendBookingConfirmation"
PAYMENT_TEST_MODE = "paymentTestMode"

DEFAULTS: Dict[str, Any] = {
    SEND_BOOKING_CONFIRMATION: True,
    PAYMENT_TEST_MODE: True,
}


def get_setting(db: Session, key: str) -> Any:
    row = db.get(Setting, key)
    if row is None:
        return DEFAULTS.get(key)
    return row.value


def set_setting(db: Session, key: str, value: Any) -> Setting:
    row = db.get(Setting, key)
    if row is None:
        row = Setting(key=key, value=value)
        db.add(row)
    else:
        row.value = value
    db.flush()
    return row


def all_settings(db: Session) -> Dict[str, Any]:
    values = dict(DEFAULTS)
    for row in db.query(Setting).all():
        values[row.key] = row.value
    return values
