# booking/views.py
#
# Purpose:
# - CRUD APIs for Services, Variants, Staff, Locations.
# - Booking listing/detail plus lifecycle actions (confirm, cancel, complete,
#   arrived, payment sync).
# - Permissions:
#   * Catalog/staff/location writes are staff-only (IsStaffOrReadOnly).
#   * Staff e-mail and phone are only shown to staff users.
#   * Booking list/detail/actions are staff-only (IsStaffOnly): they carry
#     customer contact details.
#   * Booking creation and slot queries live in views_scheduling.py and need
#     no login.
#
# Notes:
# - Deleting a staff member through the API deactivates them; their bookings
#   stay visible and they stop appearing in availability.
# - Booking status changes go through BookingScheduler so the lifecycle rules
#   are enforced in one place. notifications.signals sends e-mails on save.
#
from datetime import timedelta

from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import BasePermission
from rest_framework.response import Response

from staff.views import IsStaffOnly

from .models import Booking, DurationVariant, Location, Service, StaffMember
from .serializers import (
    BookingSerializer,
    DurationVariantSerializer,
    LocationSerializer,
    PaymentStatusSerializer,
    PublicStaffMemberSerializer,
    ServiceSerializer,
    StaffMemberSerializer,
)
from .services.booking_scheduler import BookingScheduler
from .services.errors import InvalidBookingRequest, InvalidStatusTransition
from .services.time_arithmetic import local_day_bounds, local_today, utc_to_local_wall_clock, wall_clock_date


# -------------------- Permissions --------------------
class IsStaffOrReadOnly(BasePermission):
    """
    Read: anyone
    Write: staff only
    """
    def has_permission(self, request, view):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return True
        return bool(request.user and request.user.is_staff)


# -------------------- ViewSets --------------------
class ServiceViewSet(viewsets.ModelViewSet):
    """
    Service catalog:
    - Anyone can list active services (with their duration variants).
    - Only staff can create/update/delete services and see inactive ones.
    """
    serializer_class = ServiceSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        user = getattr(self.request, "user", None)
        qs = Service.objects.all().prefetch_related("variants").order_by("id")
        if user and user.is_authenticated and user.is_staff:
            return qs
        return qs.filter(active=True)


class DurationVariantViewSet(viewsets.ModelViewSet):
    queryset = DurationVariant.objects.select_related("service").all()
    serializer_class = DurationVariantSerializer
    permission_classes = [IsStaffOrReadOnly]


class StaffMemberViewSet(viewsets.ModelViewSet):
    queryset = StaffMember.objects.all().order_by("id")
    serializer_class = StaffMemberSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_serializer_class(self):
        user = getattr(self.request, "user", None)
        if user and user.is_authenticated and user.is_staff:
            return StaffMemberSerializer
        return PublicStaffMemberSerializer

    def perform_destroy(self, instance):
        # Soft delete: history must keep pointing at the staff member.
        instance.is_active = False
        instance.save(update_fields=["is_active"])


class LocationViewSet(viewsets.ModelViewSet):
    queryset = Location.objects.all().order_by("id")
    serializer_class = LocationSerializer
    permission_classes = [IsStaffOrReadOnly]


class BookingViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Endpoints:
    - GET  /api/bookings/?staff=&location=&date=&status=   list
    - GET  /api/bookings/{id}/                            detail
    - POST /api/bookings/{id}/confirm/                    pending -> confirmed
    - POST /api/bookings/{id}/cancel/                     -> cancelled
    - POST /api/bookings/{id}/complete/                   confirmed -> completed
    - POST /api/bookings/{id}/arrived/                    POS arrival marking
    - POST /api/bookings/{id}/payment/                    order financial status sync

    'date' is a local calendar date at the booking's location. Cancelled
    bookings are excluded unless status=cancelled is asked for.
    """
    serializer_class = BookingSerializer
    permission_classes = [IsStaffOnly]
    scheduler = BookingScheduler()

    def get_queryset(self):
        qs = Booking.objects.select_related("variant__service", "location", "staff").order_by("scheduled_at")
        params = self.request.query_params

        staff_id = (params.get("staff") or "").strip()
        if staff_id:
            qs = qs.filter(staff_id=staff_id)

        location_id = (params.get("location") or "").strip()
        if location_id:
            qs = qs.filter(location_id=location_id)

        status_val = (params.get("status") or "").strip().lower()
        if status_val:
            qs = qs.filter(status=status_val)
        elif self.action in ("list", "today"):
            qs = qs.exclude(status=Booking.STATUS_CANCELLED)

        return qs

    def list(self, request, *args, **kwargs):
        qs = self.get_queryset()
        date_raw = (request.query_params.get("date") or "").strip()
        if date_raw:
            day = parse_date(date_raw)
            if day is None:
                return Response(
                    {"detail": "Invalid date format. Use YYYY-MM-DD."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            qs = self._on_local_day(qs, day, request.query_params.get("location"))
        return Response(self.get_serializer(qs, many=True).data)

    def _on_local_day(self, qs, day, location_id):
        location = Location.objects.filter(pk=location_id).first() if location_id else None
        if location is not None:
            start, end = local_day_bounds(day, location.timezone)
            return list(qs.filter(scheduled_at__gte=start, scheduled_at__lt=end))

        # Mixed locations: narrow in SQL, then compare each booking's own local date.
        start, end = local_day_bounds(day, "UTC")
        candidates = qs.filter(
            scheduled_at__gte=start - timedelta(days=1),
            scheduled_at__lt=end + timedelta(days=1),
        )
        return [
            b for b in candidates
            if wall_clock_date(
                utc_to_local_wall_clock(b.scheduled_at, b.location_timezone or b.location.timezone)
            ) == day
        ]

    def _run(self, func, *args, **kwargs):
        try:
            booking = func(*args, **kwargs)
        except (InvalidStatusTransition, InvalidBookingRequest) as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(BookingSerializer(booking).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"])
    def confirm(self, request, pk=None):
        return self._run(self.scheduler.confirm, self.get_object())

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        reason = (request.data.get("reason") or "").strip()
        return self._run(self.scheduler.cancel, self.get_object(), reason=reason)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):
        return self._run(self.scheduler.complete, self.get_object())

    @action(detail=True, methods=["post"])
    def arrived(self, request, pk=None):
        return self._run(self.scheduler.mark_arrived, self.get_object())

    @action(detail=True, methods=["post"])
    def payment(self, request, pk=None):
        serializer = PaymentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._run(
            self.scheduler.sync_payment_status,
            self.get_object(),
            serializer.validated_data["financial_status"],
        )

    @action(detail=False, methods=["get"], url_path="today")
    def today(self, request):
        """
        GET /api/bookings/today/?location=ID
        The POS list: today's non-cancelled bookings in the location's timezone.
        """
        location_id = (request.query_params.get("location") or "").strip()
        location = Location.objects.filter(pk=location_id).first() if location_id else None
        if location is None:
            return Response({"detail": "Missing or unknown 'location'."}, status=status.HTTP_400_BAD_REQUEST)

        day = local_today(location.timezone, timezone.now())
        qs = self._on_local_day(self.get_queryset().filter(location=location), day, location.pk)
        return Response({"date": day.isoformat(), "bookings": self.get_serializer(qs, many=True).data})
