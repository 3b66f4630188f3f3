from rest_framework import viewsets
from rest_framework.permissions import BasePermission
from .models import DateAvailabilityOverride, WeeklyAvailabilityRule
from .serializers import DateAvailabilityOverrideSerializer, WeeklyAvailabilityRuleSerializer

class IsStaffOnly(BasePermission):
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_staff)

class WeeklyAvailabilityRuleViewSet(viewsets.ModelViewSet):
    serializer_class = WeeklyAvailabilityRuleSerializer
    permission_classes = [IsStaffOnly]

    def get_queryset(self):
        qs = WeeklyAvailabilityRule.objects.all().order_by("staff_id", "id")
        staff_id = self.request.query_params.get("staff")
        if staff_id:
            qs = qs.filter(staff_id=staff_id)
        return qs

class DateAvailabilityOverrideViewSet(viewsets.ModelViewSet):
    serializer_class = DateAvailabilityOverrideSerializer
    permission_classes = [IsStaffOnly]

    def get_queryset(self):
        qs = DateAvailabilityOverride.objects.all().order_by("staff_id", "date")
        staff_id = self.request.query_params.get("staff")
        if staff_id:
            qs = qs.filter(staff_id=staff_id)
        return qs
