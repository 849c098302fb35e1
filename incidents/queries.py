"""
Tenant-scoped incident queries for the admin API.
Every entry point takes the effective organization id; there is no
cross-tenant variant.
"""
import csv
import uuid
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from django.utils import timezone
from django.utils.dateparse import parse_date

from .models import Incident

SORTABLE = {
    "timestamp": "timestamp",
    "studentName": "student_name",
    "level": "level",
    "category": "category",
}


@dataclass
class IncidentFilters:
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    student_id: Optional[str] = None
    teacher_email: Optional[str] = None
    classroom_id: Optional[str] = None
    level: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    sort_by: str = "timestamp"
    sort_order: str = "desc"

    @classmethod
    def from_query(cls, params):
        return cls(
            date_from=params.get("dateFrom") or None,
            date_to=params.get("dateTo") or None,
            student_id=params.get("studentId") or None,
            teacher_email=(params.get("teacherEmail") or "").lower() or None,
            classroom_id=params.get("classroomId") or None,
            level=params.get("level") or None,
            category=params.get("category") or None,
            type=params.get("type") or None,
            sort_by=params.get("sortBy") or "timestamp",
            sort_order=params.get("sortOrder") or "desc",
        )


def _day_start(value):
    day = parse_date(value) if value else None
    if day is None:
        return None
    return timezone.make_aware(datetime.combine(day, time.min))


def scoped_incidents(organization_id, filters=None):
    """Filtered queryset for one organization."""
    qs = Incident.objects.for_organization(organization_id).select_related("classroom")
    if filters is None:
        return qs

    start = _day_start(filters.date_from)
    if start is not None:
        qs = qs.filter(timestamp__gte=start)
    end = _day_start(filters.date_to)
    if end is not None:
        # dateTo is inclusive
        qs = qs.filter(timestamp__lt=end + timedelta(days=1))
    if filters.student_id:
        qs = qs.filter(student_id=filters.student_id)
    if filters.teacher_email:
        qs = qs.filter(teacher_email__iexact=filters.teacher_email)
    if filters.classroom_id:
        try:
            qs = qs.filter(classroom_id=uuid.UUID(filters.classroom_id))
        except ValueError:
            return qs.none()
    if filters.level:
        qs = qs.filter(level=filters.level)
    if filters.category:
        qs = qs.filter(category=filters.category)
    if filters.type in Incident.Type.values:
        qs = qs.filter(type=filters.type)

    sort = SORTABLE.get(filters.sort_by, "timestamp")
    if filters.sort_order == "asc":
        return qs.order_by(sort, "id")
    return qs.order_by(f"-{sort}", "-id")


def serialize_incident(incident):
    classroom = incident.classroom
    return {
        "uuid": str(incident.uuid),
        "timestamp": incident.timestamp.isoformat(),
        "type": incident.type,
        "studentId": incident.student_id,
        "studentName": incident.student_name,
        "level": incident.level,
        "category": incident.category,
        "location": incident.location,
        "actionTaken": incident.action_taken,
        "note": incident.note,
        "teacherEmail": incident.teacher_email,
        "classCode": classroom.code if classroom else incident.class_code,
        "className": classroom.name if classroom else "",
        "device": incident.device,
    }


def get_incidents_page(organization_id, filters=None, page=1, page_size=25):
    """Return one page of serialized incidents with pagination info."""
    qs = scoped_incidents(organization_id, filters)
    total = qs.count()
    total_pages = max(1, (total + page_size - 1) // page_size)
    offset = (page - 1) * page_size
    rows = [serialize_incident(incident) for incident in qs[offset:offset + page_size]]
    return {
        "rows": rows,
        "pagination": {
            "page": page,
            "limit": page_size,
            "total": total,
            "totalPages": total_pages,
        },
    }


# ---------------------------------------------------------------------------
# CSV Export
# ---------------------------------------------------------------------------
CSV_COLUMNS = [
    "Date", "Time", "Type", "Student ID", "Student Name", "Level", "Category",
    "Location", "Action Taken", "Note", "Teacher Email", "Class Code",
    "Class Name", "Device", "UUID",
]


class Echo:
    """File-like object whose write returns the value, for streaming csv rows."""

    def write(self, value):
        return value


def csv_row(incident):
    local = timezone.localtime(incident.timestamp)
    classroom = incident.classroom
    return [
        local.strftime("%Y-%m-%d"),
        local.strftime("%H:%M:%S"),
        incident.type,
        incident.student_id,
        incident.student_name,
        incident.level,
        incident.category,
        incident.location,
        incident.action_taken,
        incident.note,
        incident.teacher_email,
        classroom.code if classroom else incident.class_code,
        classroom.name if classroom else "",
        incident.device,
        str(incident.uuid),
    ]


def iter_csv(organization_id, filters=None):
    """Yield encoded CSV lines, header first."""
    writer = csv.writer(Echo())
    yield writer.writerow(CSV_COLUMNS)
    qs = scoped_incidents(organization_id, filters).order_by("-timestamp", "-id")
    for incident in qs.iterator(chunk_size=500):
        yield writer.writerow(csv_row(incident))
