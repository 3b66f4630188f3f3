from django.contrib import admin
from .models import Booking, Customer, DurationVariant, Location, Service, StaffMember


class DurationVariantInline(admin.TabularInline):
    model = DurationVariant
    extra = 0


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "active")
    list_filter = ("active",)
    search_fields = ("name",)
    inlines = [DurationVariantInline]

@admin.register(StaffMember)
class StaffMemberAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "title", "is_active")
    list_filter = ("is_active",)

@admin.register(Location)
class LocationAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "timezone", "offers_services")

@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "phone")
    search_fields = ("name", "email")

@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ("id", "customer_name", "variant", "staff", "location", "scheduled_at", "status", "arrived")
    list_filter = ("status", "location", "staff")
    search_fields = ("customer_name", "customer_email")
    # Creating bookings here skips the overlap check; use the API for that.
    readonly_fields = ("created_at", "updated_at", "cancelled_at")
