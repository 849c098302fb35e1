"""Project-level views: health check and the django-ratelimit block handler."""
import logging
import time

from django.db import DatabaseError, connection
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.cache import never_cache
from django.views.decorators.http import require_GET

from incidents.sheets import MirrorWriteError, get_mirror
from .http import json_error

logger = logging.getLogger(__name__)


def ratelimited(request, exception):
    """Rendered by django-ratelimit when a ``block=True`` limit trips."""
    logger.warning("Request throttled", extra={"event": "rate_limited", "path": request.path})
    return json_error("Too many requests. Please slow down.", status=429, headers={"Retry-After": "60"})


def _check_database():
    start = time.monotonic()
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()
    except DatabaseError as exc:
        return {"ok": False, "error": str(exc) or "Database check failed",
                "latency": _elapsed_ms(start)}
    return {"ok": True, "latency": _elapsed_ms(start)}


def _check_mirror():
    start = time.monotonic()
    mirror = get_mirror()
    missing = mirror.missing_configuration()
    if missing:
        return {"ok": False, "error": "Missing Google Sheets credentials"}
    try:
        mirror.check()
    except MirrorWriteError as exc:
        return {"ok": False, "error": str(exc), "latency": _elapsed_ms(start)}
    return {"ok": True, "latency": _elapsed_ms(start)}


def _elapsed_ms(start):
    return int((time.monotonic() - start) * 1000)


@never_cache
@require_GET
def health_view(request):
    database = _check_database()
    sheets = _check_mirror()
    healthy = database["ok"] and sheets["ok"]
    if not healthy:
        logger.warning("Health check degraded", extra={
            "event": "health_degraded",
            "database_ok": database["ok"],
            "sheets_ok": sheets["ok"],
        })
    return JsonResponse(
        {
            "status": "healthy" if healthy else "degraded",
            "timestamp": timezone.now().isoformat(),
            "checks": {"database": database, "sheets": sheets},
        },
        status=200 if healthy else 503,
    )
