from fastapi import APIRouter

# Auth
from carpark.api.v1.public.auth import router as auth_router

# Public: lots, prices, addon catalog
from carpark.api.v1.public.lots import router as lots_router
from carpark.api.v1.public.pricing import router as pricing_router
from carpark.api.v1.public.services import router as services_router

# Public: checkout: spot holds, bookings, payments
from carpark.api.v1.public.reservations import router as reservations_router
from carpark.api.v1.public.bookings import router as bookings_router
from carpark.api.v1.public.payments import router as payments_router
from carpark.api.v1.public.webhooks import router as webhooks_router

# Public: lookups
from carpark.api.v1.public.vehicles import router as vehicles_router
from carpark.api.v1.public.flights import router as flights_router

# Public: user profile
from carpark.api.v1.public.me import router as me_router

# Operator
from carpark.api.v1.operator.bookings import router as operator_bookings_router
from carpark.api.v1.operator.dashboard import router as operator_dashboard_router

# Admin
from carpark.api.v1.admin.lots import router as admin_lots_router, vehicle_type_router
from carpark.api.v1.admin.pricing import router as admin_pricing_router
from carpark.api.v1.admin.services import router as admin_services_router, category_router
from carpark.api.v1.admin.users import router as admin_users_router
from carpark.api.v1.admin.settings import router as admin_settings_router
from carpark.api.v1.admin.payments import router as admin_payments_router
from carpark.api.v1.admin.bookings import router as admin_bookings_router
from carpark.api.v1.admin.dashboard import router as admin_dashboard_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: lots, prices, addon catalog ---
api_router.include_router(lots_router)
api_router.include_router(pricing_router)
api_router.include_router(services_router)

# --- Public: checkout ---
api_router.include_router(reservations_router)
api_router.include_router(bookings_router)
api_router.include_router(payments_router)
api_router.include_router(webhooks_router)

# --- Public: lookups ---
api_router.include_router(vehicles_router)
api_router.include_router(flights_router)

# --- Public: profile ---
api_router.include_router(me_router)

# --- Operator ---
api_router.include_router(operator_bookings_router)
api_router.include_router(operator_dashboard_router)

# --- Admin ---
api_router.include_router(admin_lots_router)
api_router.include_router(vehicle_type_router)
api_router.include_router(admin_pricing_router)
api_router.include_router(admin_services_router)
api_router.include_router(category_router)
api_router.include_router(admin_users_router)
api_router.include_router(admin_settings_router)
api_router.include_router(admin_payments_router)
api_router.include_router(admin_bookings_router)
api_router.include_router(admin_dashboard_router)
