from carpark.db.session import Base
from carpark.models.user import User
from carpark.models.lot import Lot, VehicleType, LotPricing
from carpark.models.service import ServiceCategory, Service, LotService
from carpark.models.vehicle import Vehicle
from carpark.models.booking import Booking, BookingAddon, SpotReservation
from carpark.models.payment import Payment
from carpark.models.system import FlightCache, Setting, RateLimitHit
