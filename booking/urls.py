# booking/urls.py
#
# Purpose:
# - Expose REST API endpoints for the booking app via DRF router
# - Public storefront endpoints:
#     * GET  /api/available-slots/
#     * POST /api/create-booking/
#
# Notes for developers:
# - Catalog/staff/location/booking routes are registered using DefaultRouter.
# - Staff availability rules live in the staff app (staff/urls.py).

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    BookingViewSet,
    DurationVariantViewSet,
    LocationViewSet,
    ServiceViewSet,
    StaffMemberViewSet,
)
from .views_scheduling import AvailableSlotsView, CreateBookingView

# --------------------------
# DRF Router registrations
# --------------------------
router = DefaultRouter()
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"variants", DurationVariantViewSet, basename="variant")
router.register(r"staff", StaffMemberViewSet, basename="staff")
router.register(r"locations", LocationViewSet, basename="location")
router.register(r"bookings", BookingViewSet, basename="booking")

# --------------------------
# URL patterns
# --------------------------
urlpatterns = [
    path("available-slots/", AvailableSlotsView.as_view(), name="available_slots"),
    path("create-booking/", CreateBookingView.as_view(), name="create_booking"),
    path("", include(router.urls)),
]
