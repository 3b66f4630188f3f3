from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import DateAvailabilityOverrideViewSet, WeeklyAvailabilityRuleViewSet

router = DefaultRouter()
router.register(r"weekly", WeeklyAvailabilityRuleViewSet, basename="weekly-availability")
router.register(r"overrides", DateAvailabilityOverrideViewSet, basename="availability-override")

urlpatterns = [path("", include(router.urls))]
