import sys
import os
import traceback
from datetime import datetime, timedelta, timezone

# Add project root to path
sys.path.append(os.getcwd())

print("Starting schema verification...")

try:
    from carpark import schemas
    print("Schemas package imported successfully.")

    # Try instantiating a few to check for runtime errors in definitions
    from pydantic import ValidationError

    try:
        user = schemas.UserCreate(email="test@example.com", full_name="Test User", password="password")
        print(f"UserCreate schema valid: {user}")
    except ValidationError as e:
        print(f"UserCreate validation failed: {e}")

    drop_off = datetime.now(timezone.utc) + timedelta(days=1)
    try:
        schemas.BookingCreate(
            license_plate="AB123",
            vehicle_type_code="small",
            drop_off_time=drop_off,
            pick_up_time=drop_off - timedelta(hours=1),
        )
        print("FAILURE: BookingCreate accepted pick-up before drop-off.")
        sys.exit(1)
    except ValidationError:
        print("BookingCreate rejects reversed times.")

    print("SUCCESS: Schemas verified.")

except Exception:
    print("FAILURE: Schema verification failed.")
    traceback.print_exc()
    sys.exit(1)
