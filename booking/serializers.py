from rest_framework import serializers

from .models import Booking, DurationVariant, Location, Service, StaffMember
from .services.errors import InvalidTimeFormat, OutOfRange
from .services.time_arithmetic import normalize_clock_time, utc_to_local_wall_clock


class DurationVariantSerializer(serializers.ModelSerializer):
    class Meta:
        model = DurationVariant
        fields = ["id", "service", "title", "duration_minutes", "price", "active", "shopify_variant_id"]
        extra_kwargs = {"duration_minutes": {"required": False}}


class ServiceSerializer(serializers.ModelSerializer):
    variants = DurationVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Service
        fields = ["id", "name", "description", "active", "shopify_product_id", "variants"]


class StaffMemberSerializer(serializers.ModelSerializer):
    class Meta:
        model = StaffMember
        fields = ["id", "name", "email", "phone", "title", "bio", "is_active"]


class PublicStaffMemberSerializer(serializers.ModelSerializer):
    """Storefront view of a staff member: no contact details."""
    class Meta:
        model = StaffMember
        fields = ["id", "name", "title", "bio", "is_active"]


class LocationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Location
        fields = ["id", "name", "address", "timezone", "offers_services", "shopify_location_id"]


class BookingSerializer(serializers.ModelSerializer):
    """Read representation; writes go through the scheduler, not this serializer."""
    local_date = serializers.SerializerMethodField()
    local_time = serializers.SerializerMethodField()
    service = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "staff",
            "location",
            "variant",
            "service",
            "customer",
            "customer_name",
            "customer_email",
            "scheduled_at",
            "local_date",
            "local_time",
            "location_timezone",
            "duration_minutes",
            "status",
            "arrived",
            "notes",
            "order_id",
            "created_at",
            "cancelled_at",
        ]
        read_only_fields = fields

    def _wall(self, obj):
        tz_name = obj.location_timezone or obj.location.timezone
        return utc_to_local_wall_clock(obj.scheduled_at, tz_name)

    def get_local_date(self, obj):
        w = self._wall(obj)
        return f"{w.year:04d}-{w.month:02d}-{w.day:02d}"

    def get_local_time(self, obj):
        w = self._wall(obj)
        return f"{w.hour:02d}:{w.minute:02d}"

    def get_service(self, obj):
        return obj.variant.service.name


# -------------------- Scheduling request payloads --------------------
def _clock_time(value):
    try:
        normalized = normalize_clock_time(value)
    except (InvalidTimeFormat, OutOfRange) as e:
        raise serializers.ValidationError(str(e))
    if normalized == "24:00":
        raise serializers.ValidationError("A booking cannot start at 24:00.")
    return normalized


class AvailabilityQuerySerializer(serializers.Serializer):
    variant = serializers.IntegerField()
    location = serializers.IntegerField()
    staff = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField(required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)

    def validate(self, attrs):
        start = attrs.get("date_from") or attrs.get("date")
        end = attrs.get("date_to") or attrs.get("date") or start
        if start is None:
            raise serializers.ValidationError("Provide 'date' or 'date_from' (YYYY-MM-DD).")
        if end < start:
            raise serializers.ValidationError("'date_to' must not be before 'date_from'.")
        max_days = self.context.get("max_range_days", 31)
        if (end - start).days + 1 > max_days:
            raise serializers.ValidationError(f"Date range is limited to {max_days} days.")
        attrs["start_date"] = start
        attrs["end_date"] = end
        return attrs


class CustomerInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    email = serializers.EmailField()
    phone = serializers.RegexField(r"^\d{7,15}$", required=False, allow_blank=True)


class CreateBookingSerializer(serializers.Serializer):
    service = serializers.IntegerField(required=False)
    variant = serializers.IntegerField()
    location = serializers.IntegerField()
    staff = serializers.IntegerField(required=False, allow_null=True)
    date = serializers.DateField()
    time = serializers.CharField(max_length=16)
    customer = CustomerInputSerializer()
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    confirm = serializers.BooleanField(required=False, allow_null=True, default=None)

    def validate_time(self, value):
        return _clock_time(value)

    def validate(self, attrs):
        service_id = attrs.get("service")
        if service_id is not None:
            variant = DurationVariant.objects.filter(pk=attrs["variant"]).first()
            if variant is not None and variant.service_id != service_id:
                raise serializers.ValidationError("Variant does not belong to the given service.")
        return attrs


class PaymentStatusSerializer(serializers.Serializer):
    financial_status = serializers.CharField(max_length=32)
