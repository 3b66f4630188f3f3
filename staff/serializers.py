from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from .models import DateAvailabilityOverride, WeeklyAvailabilityRule


class _CleanedModelSerializer(serializers.ModelSerializer):
    """Runs the model's clean() so API writes get the same checks as the admin."""

    def validate(self, attrs):
        attrs = super().validate(attrs)
        instance = self.instance or self.Meta.model()
        for key, value in attrs.items():
            setattr(instance, key, value)
        try:
            instance.clean()
        except DjangoValidationError as e:
            raise serializers.ValidationError(e.messages)
        return attrs


class WeeklyAvailabilityRuleSerializer(_CleanedModelSerializer):
    class Meta:
        model = WeeklyAvailabilityRule
        fields = ["id", "staff", "location", "weekdays", "start_time", "end_time", "is_available"]


class DateAvailabilityOverrideSerializer(_CleanedModelSerializer):
    class Meta:
        model = DateAvailabilityOverride
        fields = ["id", "staff", "location", "date", "start_time", "end_time", "is_available", "notes"]
