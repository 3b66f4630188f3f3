import logging

from django.db import models

logger = logging.getLogger(__name__)


class SystemSetting(models.Model):
    """
    Simple key/value settings store for shop-level scheduling knobs.
    Example keys:
      - SLOT_INTERVAL_MINUTES (e.g., '15')
      - GRACE_PERIOD_MINUTES (e.g., '15')
      - AUTO_CONFIRM_BOOKINGS ('true' / 'false')
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)

    def __str__(self):
        return f"{self.key}={self.value}"


def _to_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {raw!r}")


def get_setting(key: str, default, cast=str):
    """
    Return SystemSetting[key] converted with `cast`, or `default` when the row is
    missing or its value cannot be converted.
    """
    row = SystemSetting.objects.filter(key=key).first()
    if row is None:
        return default
    converter = _to_bool if cast is bool else cast
    try:
        return converter(row.value)
    except (TypeError, ValueError):
        logger.warning("Ignoring unparsable setting %s=%r", key, row.value)
        return default
