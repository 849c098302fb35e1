"""
Incident ingestion.

Steps run strictly in this order:

1. size guard on the raw body
2. JSON parse and ``IncidentForm`` validation
3. sanitization, then the mirror credentials check
4. authorization through the gate (identity always from the session)
5. defaults for timestamp, uuid and device
6. ``insert_if_absent`` into the database (failure logged, not fatal)
7. append to the spreadsheet mirror (failure is a 502)
8. homeroom notification (failure logged)
9. retention sweep trigger (throttled, never raises)

The spreadsheet is treated as the primary record and the database write as
best effort. A failed database write followed by a failed mirror append
loses nothing only because the client keeps the submission queued and
retries it with the same uuid.
"""
import logging
import uuid as uuid_lib
from datetime import timezone as dt_timezone
from dataclasses import dataclass, field
from typing import Dict, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from accounts.gate import authorize
from roster.services import find_classroom_by_code, find_student
from tracktally.http import InvalidJSON, parse_json_body
from .forms import REQUIRED_FIELDS, WIRE_NAMES, IncidentForm
from .models import Incident
from .notifications import notify_homeroom_teacher
from .retention import enforcer as default_enforcer
from .sheets import MirrorWriteError, get_mirror, sheet_for_type

logger = logging.getLogger(__name__)

SUBMITTER_ROLES = ("teacher", "admin")


class IngestionError(Exception):
    """A submission that stops the pipeline. ``response`` wins when set."""

    def __init__(self, message, status=400, response=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.response = response


@dataclass
class IngestionResult:
    uuid: str
    created: Optional[bool]
    notified: bool = False
    rate_headers: Dict[str, str] = field(default_factory=dict)


def parse_timestamp(value):
    """Aware datetime for a client timestamp, or None when it cannot be read."""
    if not value:
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError:
        return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def mirror_row(data):
    return [
        data["timestamp"],
        data["student_id"],
        data["student_name"],
        data["level"],
        data["category"],
        data["location"],
        data["action_taken"],
        data["note"],
        data["teacher_email"],
        data["class_code"],
        data["device"],
        data["uuid"],
    ]


class IncidentPipeline:

    def __init__(self, mirror=None, limiter=None, enforcer=None):
        self.mirror = mirror
        self.limiter = limiter
        self.enforcer = enforcer or default_enforcer

    def ingest(self, request):
        # 1. size guard
        body = request.body
        if len(body) > settings.INCIDENT_MAX_BODY_BYTES:
            raise IngestionError("Request body too large.")

        # 2. parse + validate
        try:
            payload = parse_json_body(request, body=body)
        except InvalidJSON as exc:
            raise IngestionError(str(exc))
        form = IncidentForm.from_payload(payload)
        if not form.is_valid():
            raise IngestionError(form.first_error())

        # 3. sanitize
        data = form.sanitized()
        for name in REQUIRED_FIELDS:
            if not data[name]:
                raise IngestionError(f"Missing required field: {WIRE_NAMES[name]}")

        mirror = self.mirror or get_mirror()
        missing = mirror.missing_configuration()
        if missing:
            logger.error("Sheets credentials missing", extra={"event": "mirror_not_configured",
                                                              "missing": missing})
            raise IngestionError(f"Sheets credentials missing: {', '.join(missing)}", status=500)

        # 4. authorization replay
        gate = authorize(request, SUBMITTER_ROLES, "incident", limiter=self.limiter)
        if gate.error is not None:
            raise IngestionError("Rejected by gate", status=gate.error.status_code, response=gate.error)
        ctx = gate.context
        data["teacher_email"] = ctx.identity.email
        organization_id = ctx.organization_id

        # 5. defaults
        data["timestamp"] = data["timestamp"] or timezone.now().isoformat()
        data["uuid"] = data["uuid"] or str(uuid_lib.uuid4())
        data["device"] = data["device"] or request.META.get("HTTP_USER_AGENT", "")[:200]

        # 6. database
        created = self._persist(data, organization_id)

        # 7. mirror
        try:
            mirror.append(sheet_for_type(data["type"]), mirror_row(data))
        except MirrorWriteError as exc:
            raise IngestionError(str(exc) or "Failed to log incident.", status=502)

        # 8. notify
        notified = self._notify(data, organization_id)

        # 9. retention
        self.enforcer.enforce()

        return IngestionResult(
            uuid=data["uuid"], created=created, notified=notified, rate_headers=ctx.rate_headers,
        )

    def _persist(self, data, organization_id):
        occurred_at = parse_timestamp(data["timestamp"])
        if occurred_at is None:
            logger.warning("Unreadable client timestamp, using server time",
                           extra={"event": "timestamp_fallback", "uuid": data["uuid"]})
            occurred_at = timezone.now()
        try:
            with transaction.atomic():
                classroom = find_classroom_by_code(organization_id, data["class_code"])
                _, created = Incident.objects.insert_if_absent(
                    data["uuid"],
                    timestamp=occurred_at,
                    type=data["type"],
                    student_id=data["student_id"],
                    student_name=data["student_name"],
                    organization_id=organization_id,
                    classroom=classroom,
                    class_code=data["class_code"],
                    teacher_email=data["teacher_email"],
                    level=data["level"],
                    category=data["category"],
                    location=data["location"],
                    action_taken=data["action_taken"],
                    note=data["note"],
                    device=data["device"],
                )
        except DatabaseError:
            logger.exception("DB write failed (continuing to Sheets)",
                             extra={"event": "incident_db_write_failed", "uuid": data["uuid"]})
            return None
        if not created:
            logger.info("Duplicate submission ignored",
                        extra={"event": "incident_duplicate", "uuid": data["uuid"]})
        return created

    def _notify(self, data, organization_id):
        try:
            student = find_student(organization_id, data["student_id"])
        except Exception:
            logger.exception("Student lookup for notification failed",
                             extra={"event": "notification_failed"})
            return False
        return notify_homeroom_teacher(student, data["teacher_email"], data)
