"""Audit log helper – call from views to record admin actions."""
import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_ipv46_address
from django.db import DatabaseError, transaction

from .models import AuditEntry

logger = logging.getLogger(__name__)

# Action names
INCIDENTS_EXPORT = "incidents.export"
INCIDENTS_PURGE = "incidents.purge"
INCIDENTS_RECOVER = "incidents.recover"
RETENTION_UPDATE = "incidents.retention.update"
OPTIONS_UPDATE = "options.update"
TEACHER_CREATE = "teachers.create"
TEACHER_UPDATE = "teachers.update"
TEACHER_DEACTIVATE = "teachers.deactivate"
ORGANIZATION_CREATE = "organizations.create"
ORGANIZATION_UPDATE = "organizations.update"
ORGANIZATION_DELETE = "organizations.delete"


def get_client_ip(request):
    """Extract IP, respecting X-Forwarded-For / X-Real-IP from the proxy."""
    xff = request.META.get("HTTP_X_FORWARDED_FOR")
    if xff:
        first = xff.split(",")[0].strip()
        if first:
            return first
    real_ip = request.META.get("HTTP_X_REAL_IP")
    if real_ip:
        return real_ip.strip()
    return request.META.get("REMOTE_ADDR")


def _storable_ip(value):
    if not value:
        return None
    try:
        validate_ipv46_address(value)
    except ValidationError:
        return None
    return value


def log_event(request, action, performed_by="", organization_id=None, meta=None):
    """Create an audit entry. A failed write is logged, never raised."""
    try:
        with transaction.atomic():
            AuditEntry.objects.create(
                action=action,
                performed_by=performed_by or "",
                organization_id=organization_id,
                meta=meta,
                ip_address=_storable_ip(get_client_ip(request)),
                user_agent=request.META.get("HTTP_USER_AGENT", "")[:500],
            )
    except DatabaseError:
        logger.exception("Failed to record audit entry", extra={"action": action})
