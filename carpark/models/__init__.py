from carpark.models.user import User, UserRole
from carpark.models.lot import Lot, VehicleType, LotPricing
from carpark.models.service import ServiceCategory, Service, LotService
from carpark.models.vehicle import Vehicle
from carpark.models.booking import Booking, BookingAddon, BookingStatus, AddonStatus, SpotReservation
from carpark.models.payment import Payment, PaymentStatus
from carpark.models.system import FlightCache, Setting, RateLimitHit
