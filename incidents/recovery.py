"""Re-import mirrored spreadsheet rows into the database (insert-if-absent)."""
import logging
import re
from dataclasses import asdict, dataclass

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from accounts.models import Teacher
from roster.services import find_classroom_by_code
from .forms import UUID_RE
from .models import Incident
from .pipeline import parse_timestamp
from .sheets import COMMENDATIONS_SHEET, INCIDENTS_SHEET, SHEET_COLUMNS

logger = logging.getLogger(__name__)

_uuid_re = re.compile(UUID_RE)


@dataclass
class RecoveryReport:
    imported: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def total(self):
        return self.imported + self.skipped + self.errors

    def as_dict(self):
        return {**asdict(self), "total": self.total}


def rows_to_records(rows):
    """Map raw sheet rows to dicts keyed by column name, dropping a header row."""
    if rows and rows[0] and str(rows[0][0]).strip().lower() == "timestamp":
        rows = rows[1:]
    width = len(SHEET_COLUMNS)
    return [
        dict(zip(SHEET_COLUMNS, (list(row) + [""] * width)[:width]))
        for row in rows
    ]


def recover_organization(mirror, organization):
    """
    Import both sheets into ``organization``. Existing uuids are left untouched.

    The sheets are shared by every school, so only rows submitted from the
    organization's domain, or by exception accounts bound to it, are taken.
    """
    report = RecoveryReport()
    members = set(
        Teacher.objects.filter(organization=organization, email__in=settings.EXCEPTION_EMAILS)
        .values_list("email", flat=True)
    )
    sources = (
        (INCIDENTS_SHEET, Incident.Type.INCIDENT),
        (COMMENDATIONS_SHEET, Incident.Type.COMMENDATION),
    )
    for sheet, record_type in sources:
        for record in rows_to_records(mirror.read_rows(sheet)):
            outcome = _import_record(record, record_type, organization, members)
            setattr(report, outcome, getattr(report, outcome) + 1)

    logger.info("Mirror recovery finished", extra={
        "event": "mirror_recovery", "organization_id": str(organization.id), **report.as_dict(),
    })
    return report


def _belongs_to(teacher_email, organization, members):
    if teacher_email in members:
        return True
    return teacher_email.rpartition("@")[2] == organization.domain


def _import_record(record, record_type, organization, members):
    record_uuid = str(record["uuid"]).strip()
    teacher_email = str(record["teacherEmail"]).strip().lower()
    if not _uuid_re.match(record_uuid) or not record["studentName"] or not teacher_email:
        return "skipped"
    if not _belongs_to(teacher_email, organization, members):
        return "skipped"

    timestamp = parse_timestamp(str(record["timestamp"]).strip()) or timezone.now()
    try:
        with transaction.atomic():
            _, created = Incident.objects.insert_if_absent(
                record_uuid,
                timestamp=timestamp,
                type=record_type,
                student_id=record["studentId"][:64],
                student_name=record["studentName"][:120],
                organization=organization,
                classroom=find_classroom_by_code(organization.id, record["classCode"]),
                class_code=record["classCode"][:32],
                teacher_email=teacher_email,
                level=record["level"][:32],
                category=record["category"][:64],
                location=record["location"][:32],
                action_taken=record["actionTaken"][:120],
                note=record["note"],
                device=record["device"][:200],
            )
    except DatabaseError:
        logger.exception("Failed to import mirrored row", extra={"event": "mirror_recovery_row_failed"})
        return "errors"
    return "imported" if created else "skipped"
