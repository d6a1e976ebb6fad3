import re
import random
import string
from datetime import datetime

from sqlalchemy.orm import Session

from carpark.models.booking import Booking

REFERENCE_PREFIX = "KEF"

# AB123, ABC12 and the newer ABX12 format
_PLATE_PATTERN = re.compile(r"^[A-Z]{2,3}[0-9]{1,3}$")


def generate_booking_reference(db: Session, now: datetime) -> str:
    """Generate a unique 'KEF-2025-XXXXXX' booking reference."""
    chars = string.ascii_uppercase + string.digits
    while True:
        reference = f"{REFERENCE_PREFIX}-{now.year}-" + "".join(random.choices(chars, k=6))
        if not db.query(Booking.id).filter(Booking.reference == reference).first():
            return reference


def normalize_license_plate(plate: str) -> str:
    return re.sub(r"[\s-]", "", plate).upper()


def is_valid_license_plate(plate: str) -> bool:
    normalized = normalize_license_plate(plate)
    return bool(_PLATE_PATTERN.match(normalized))
