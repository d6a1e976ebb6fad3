from carpark.schemas.common import PaginatedResponse, ErrorResponse, MessageResponse, StatusCount, DashboardStats
from carpark.schemas.user import (
    User, UserCreate, AdminCreate, UserUpdate, AdminUserUpdate, UserSummary,
    Token, RefreshRequest, EmailCheck,
)
from carpark.schemas.lot import (
    VehicleType, VehicleTypeCreate, VehicleTypeUpdate,
    Lot, LotCreate, LotUpdate, LotWithAvailability, LotSummary,
)
from carpark.schemas.pricing import (
    Pricing, PricingCreate, PricingUpdate, QuoteRequest, PriceQuote, PriceCalculation,
)
from carpark.schemas.service import (
    ServiceCategory, ServiceCategoryCreate, Service, ServiceCreate, ServiceUpdate,
    LotServicePrice, LotServicePriceOut, ServiceOffer, CategoryWithOffers,
)
from carpark.schemas.reservation import (
    ReservationCreate, Reservation, ReservationStatus, ReservationReleaseResponse,
)
from carpark.schemas.vehicle import VehicleLookup, VehicleInfo, VehicleCreate, Vehicle
from carpark.schemas.flight import Flight, FlightList, FlightStatus
from carpark.schemas.payment import (
    CheckoutRequest, CheckoutResponse, Payment, PaymentStatusResponse, RefundRequest,
)
from carpark.schemas.setting import SettingsUpdate, SettingsResponse, TestEmailRequest
from carpark.schemas.booking import (
    Booking, BookingCreate, BookingCancelResponse, AdminBooking, BookingAddon,
    BookingStatusUpdate, BookingUpdateResponse, AddonStatusUpdate, AddonUpdateResponse,
    EmailSendResponse,
)
