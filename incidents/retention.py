"""
Incident retention.

``enforce()`` deletes records older than the configured window. It is called
after every submission but runs at most once per
``INCIDENT_RETENTION_INTERVAL_SECONDS`` per process, and reads the configured
window at most once per ``INCIDENT_RETENTION_CACHE_SECONDS``. Failures are
logged and never raised to the caller.
"""
import logging
import threading
import time
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from organizations.models import Setting
from .models import Incident

logger = logging.getLogger(__name__)

RETENTION_KEY = "incident_retention_days"
MIN_DAYS = 1
MAX_DAYS = 3650


class RetentionEnforcer:

    def __init__(self, clock=time.monotonic):
        self.clock = clock
        self._lock = threading.Lock()
        self._cached = None  # (days, fetched_at)
        self._last_run = None

    def reset(self):
        with self._lock:
            self._cached = None
            self._last_run = None

    def get_retention_days(self, force=False):
        now = self.clock()
        cached = self._cached
        if not force and cached and now - cached[1] < settings.INCIDENT_RETENTION_CACHE_SECONDS:
            return cached[0]

        default = settings.INCIDENT_RETENTION_DEFAULT_DAYS
        setting = Setting.objects.filter(key=RETENTION_KEY, organization__isnull=True).first()
        days = default
        if setting is not None:
            try:
                days = max(int(setting.value), MIN_DAYS)
            except (TypeError, ValueError):
                logger.warning("Ignoring malformed retention setting",
                               extra={"event": "retention_setting_invalid"})
        self._cached = (days, now)
        return days

    def set_retention_days(self, days):
        days = min(max(int(days), MIN_DAYS), MAX_DAYS)
        Setting.objects.update_or_create(
            key=RETENTION_KEY, defaults={"value": days, "organization": None}
        )
        self._cached = (days, self.clock())
        return days

    def enforce(self, force=False):
        """Delete expired records. Returns the number deleted, or None when throttled."""
        now = self.clock()
        with self._lock:
            interval = settings.INCIDENT_RETENTION_INTERVAL_SECONDS
            if not force and self._last_run is not None and now - self._last_run < interval:
                return None
            self._last_run = now

        try:
            days = self.get_retention_days()
            cutoff = timezone.now() - timedelta(days=days)
            deleted, _ = Incident.objects.filter(timestamp__lt=cutoff).delete()
        except Exception:
            logger.exception("Failed to enforce incident retention", extra={"event": "retention_failed"})
            return 0

        if deleted:
            logger.info("Retention sweep removed incidents", extra={
                "event": "retention_sweep", "deleted": deleted, "retention_days": days,
            })
        return deleted


enforcer = RetentionEnforcer()
