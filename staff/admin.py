# staff/admin.py
from django.contrib import admin
from .models import DateAvailabilityOverride, WeeklyAvailabilityRule

@admin.register(WeeklyAvailabilityRule)
class WeeklyAvailabilityRuleAdmin(admin.ModelAdmin):
    list_display = ("staff", "location", "weekdays", "start_time", "end_time", "is_available")
    list_filter = ("staff", "is_available")
    search_fields = ("staff__name",)

@admin.register(DateAvailabilityOverride)
class DateAvailabilityOverrideAdmin(admin.ModelAdmin):
    list_display = ("staff", "location", "date", "start_time", "end_time", "is_available")
    list_filter = ("staff", "is_available")
    search_fields = ("staff__name", "notes")
