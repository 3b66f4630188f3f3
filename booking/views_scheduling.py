# booking/views_scheduling.py
#
# Purpose:
# - Public storefront endpoints used by the booking widget:
#     * GET  /api/available-slots/   offered start times per local date
#     * POST /api/create-booking/    validate + persist one booking
#
# Notes:
# - Both endpoints are anonymous (the storefront has no Django login).
#   "confirm" on create-booking is honored for staff callers only.
# - The slots endpoint never fails hard on data problems: it logs and returns
#   an empty slot list so the widget can still render.
# - create-booking re-checks conflicts under a per-staff lock; a 409 tells the
#   widget to refresh slots and let the customer pick again.
#
import logging

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import DurationVariant, Location
from .serializers import AvailabilityQuerySerializer, BookingSerializer, CreateBookingSerializer
from .services.booking_scheduler import BookingScheduler
from .services.errors import (
    InvalidBookingRequest,
    InvalidTimeFormat,
    NoQualifiedStaff,
    OutOfRange,
    SchedulingError,
    SlotNoLongerAvailable,
)

logger = logging.getLogger(__name__)


def _failure(reason, detail, http_status):
    return Response({"success": False, "reason": reason, "detail": detail}, status=http_status)


class AvailableSlotsView(APIView):
    """
    GET /api/available-slots/?variant=ID&location=ID&date=YYYY-MM-DD
        optional: staff=ID, date_from/date_to instead of date
    """
    permission_classes = [AllowAny]
    scheduler = BookingScheduler()

    def get(self, request):
        query = AvailabilityQuerySerializer(
            data=request.query_params,
            context={"max_range_days": getattr(settings, "BOOKING_MAX_RANGE_DAYS", 31)},
        )
        query.is_valid(raise_exception=True)
        data = query.validated_data

        location = Location.objects.filter(pk=data["location"]).first()
        if location is None:
            return Response({"detail": "Location not found."}, status=status.HTTP_404_NOT_FOUND)
        variant = DurationVariant.objects.select_related("service").filter(pk=data["variant"]).first()
        if variant is None:
            return Response({"detail": "Variant not found."}, status=status.HTTP_404_NOT_FOUND)

        try:
            result = self.scheduler.compute_available_slots(
                variant,
                location,
                data["start_date"],
                data["end_date"],
                staff_id=data.get("staff"),
            )
        except (SchedulingError, ValueError):
            logger.exception(
                "Slot computation failed for variant=%s location=%s", variant.pk, location.pk
            )
            return Response(
                {
                    "location": location.pk,
                    "timezone": location.timezone,
                    "duration_minutes": variant.duration_minutes
                    or getattr(settings, "BOOKING_DEFAULT_DURATION_MINUTES", 60),
                    "slots": {},
                    "staff": {},
                }
            )

        return Response(result.as_dict())


class CreateBookingView(APIView):
    """
    POST /api/create-booking/
    {
      "service": 1, "variant": 2, "location": 1, "staff": null,
      "date": "2030-07-01", "time": "14:00",
      "customer": {"name": "...", "email": "...", "phone": "..."},
      "notes": "", "confirm": null
    }
    """
    permission_classes = [AllowAny]
    scheduler = BookingScheduler()

    def post(self, request):
        payload = CreateBookingSerializer(data=request.data)
        if not payload.is_valid():
            return _failure("invalid_request", payload.errors, status.HTTP_400_BAD_REQUEST)
        data = payload.validated_data
        # Only staff surfaces (admin, POS) may pick the initial status.
        confirm = data.get("confirm") if request.user and request.user.is_staff else None

        try:
            booking = self.scheduler.schedule_booking(
                variant_id=data["variant"],
                location_id=data["location"],
                day=data["date"],
                time=data["time"],
                customer=data["customer"],
                staff_id=data.get("staff"),
                confirm=confirm,
                notes=data.get("notes", ""),
            )
        except SlotNoLongerAvailable as e:
            return _failure("slot_no_longer_available", str(e), status.HTTP_409_CONFLICT)
        except NoQualifiedStaff as e:
            return _failure("no_qualified_staff", str(e), status.HTTP_409_CONFLICT)
        except (InvalidBookingRequest, InvalidTimeFormat, OutOfRange) as e:
            return _failure("invalid_request", str(e), status.HTTP_400_BAD_REQUEST)

        return Response(
            {"success": True, "booking": BookingSerializer(booking).data},
            status=status.HTTP_201_CREATED,
        )
