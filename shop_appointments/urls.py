# shop_appointments/urls.py
#
# Purpose:
# - Project URL router.
# - Keeps DRF routers under /api/; staff availability under /api/availability/.
#
from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # Django admin
    path("admin/", admin.site.urls),

    # =====
    # API's
    # =====
    path("api/", include("booking.urls")),
    path("api/availability/", include("staff.urls")),
]
