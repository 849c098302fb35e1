"""Tenant admin JSON API – accounts, incident records, retention, options."""
import logging

from django.conf import settings
from django.http import JsonResponse, StreamingHttpResponse
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from accounts.forms import TeacherCreateForm, TeacherUpdateForm, first_error
from accounts.models import Teacher
from auditlog import services as audit
from incidents.forms import RetentionForm
from incidents.models import Incident
from incidents.queries import IncidentFilters, get_incidents_page, iter_csv
from incidents.recovery import recover_organization
from incidents.retention import enforcer
from incidents.sheets import MirrorWriteError, get_mirror
from organizations import services as org_services
from organizations.exceptions import OrganizationError
from tracktally.http import InvalidJSON, json_error, json_ok, parse_json_body
from .decorators import admin_required, superadmin_tenant_required

logger = logging.getLogger(__name__)


def _parse_int(value, default, minimum=1, maximum=None):
    try:
        v = int(value)
        v = max(v, minimum)
        if maximum:
            v = min(v, maximum)
        return v
    except (TypeError, ValueError):
        return default


def _audit(request, action, meta=None):
    audit.log_event(
        request, action,
        performed_by=request.gate.identity.email,
        organization_id=request.gate.organization_id,
        meta=meta,
    )


def _serialize_teacher(teacher):
    return {
        "id": str(teacher.id),
        "email": teacher.email,
        "displayName": teacher.display_name,
        "role": teacher.role,
        "isSpecialist": teacher.is_specialist,
        "active": teacher.is_active,
        "homeroomClasses": [
            {"id": str(c.id), "name": c.name, "code": c.code}
            for c in teacher.homeroom_classrooms.all()
        ],
        "specialistClasses": [
            {"id": str(c.id), "name": c.name, "code": c.code}
            for c in teacher.specialist_classrooms.all()
        ],
    }


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------
@admin_required()
@require_GET
def organization_view(request):
    try:
        org = org_services.get_organization(request.gate.organization_id)
    except OrganizationError as exc:
        return json_error(str(exc), status=exc.status)
    return json_ok(org_services.serialize_organization(org))


# ---------------------------------------------------------------------------
# Account Management
# ---------------------------------------------------------------------------
@csrf_exempt
@admin_required()
@require_http_methods(["GET", "POST"])
def teachers_view(request):
    org_id = request.gate.organization_id
    if request.method == "GET":
        teachers = (
            Teacher.objects.filter(organization_id=org_id)
            .prefetch_related("homeroom_classrooms", "specialist_classrooms")
            .order_by("email")
        )
        return json_ok([_serialize_teacher(t) for t in teachers])

    try:
        body = parse_json_body(request)
    except InvalidJSON as exc:
        return json_error(str(exc))
    try:
        organization = org_services.get_organization(org_id)
    except OrganizationError as exc:
        return json_error(str(exc), status=exc.status)

    form = TeacherCreateForm.from_payload(body)
    if not form.is_valid():
        return json_error(first_error(form))
    teacher = form.save(organization=organization)
    _audit(request, audit.TEACHER_CREATE, meta={"teacher_id": str(teacher.id), "role": teacher.role})
    return json_ok(_serialize_teacher(teacher), status=201)


@csrf_exempt
@admin_required()
@require_http_methods(["PATCH", "DELETE"])
def teacher_detail_view(request, teacher_id):
    teacher = Teacher.objects.filter(pk=teacher_id, organization_id=request.gate.organization_id).first()
    if teacher is None:
        return json_error("Teacher not found.", status=404)

    if request.method == "DELETE":
        # Deactivate only; incidents still reference the address.
        if teacher.is_active:
            teacher.is_active = False
            teacher.save(update_fields=["is_active", "updated_at"])
        _audit(request, audit.TEACHER_DEACTIVATE, meta={"teacher_id": str(teacher.id)})
        return json_ok()

    try:
        body = parse_json_body(request)
    except InvalidJSON as exc:
        return json_error(str(exc))
    form = TeacherUpdateForm.from_payload(body, instance=teacher)
    if not form.is_valid():
        return json_error(first_error(form))
    teacher = form.save()
    _audit(request, audit.TEACHER_UPDATE, meta={
        "teacher_id": str(teacher.id), "fields": sorted(form.changed_data),
    })
    return json_ok(_serialize_teacher(teacher))


# ---------------------------------------------------------------------------
# Incident Records
# ---------------------------------------------------------------------------
@admin_required()
@require_GET
def incidents_view(request):
    page = _parse_int(request.GET.get("page"), 1)
    page_size = _parse_int(request.GET.get("limit"), settings.DEFAULT_PAGE_SIZE,
                           maximum=settings.MAX_PAGE_SIZE)
    result = get_incidents_page(
        request.gate.organization_id,
        filters=IncidentFilters.from_query(request.GET),
        page=page, page_size=page_size,
    )
    return JsonResponse({"ok": True, "data": result["rows"], "pagination": result["pagination"]})


@csrf_exempt
@admin_required()
@require_http_methods(["DELETE"])
def incident_detail_view(request, incident_uuid):
    incident = (
        Incident.objects.for_organization(request.gate.organization_id)
        .filter(uuid=incident_uuid)
        .first()
    )
    if incident is None:
        return json_error("Incident not found.", status=404)
    incident.delete()
    _audit(request, audit.INCIDENTS_PURGE, meta={"uuid": str(incident_uuid)})
    return json_ok()


@admin_required()
@require_GET
def export_csv_view(request):
    """Stream every matching record for the tenant as CSV."""
    org_id = request.gate.organization_id
    filters = IncidentFilters.from_query(request.GET)
    _audit(request, audit.INCIDENTS_EXPORT, meta={"filters": {
        k: v for k, v in vars(filters).items() if v and k not in ("sort_by", "sort_order")
    }})

    stamp = timezone.now().strftime("%Y%m%d-%H%M%S")
    response = StreamingHttpResponse(iter_csv(org_id, filters), content_type="text/csv; charset=utf-8")
    response["Content-Disposition"] = f'attachment; filename="tracktally-incidents-{stamp}.csv"'
    return response


@csrf_exempt
@admin_required()
@require_http_methods(["GET", "POST"])
def retention_view(request):
    if request.method == "GET":
        return json_ok({"days": enforcer.get_retention_days(force=True)})

    try:
        body = parse_json_body(request)
    except InvalidJSON as exc:
        return json_error(str(exc))
    form = RetentionForm(data={"days": body.get("days")})
    if not form.is_valid():
        return json_error(f"days: {form.errors['days'][0]}")
    days = enforcer.set_retention_days(form.cleaned_data["days"])
    _audit(request, audit.RETENTION_UPDATE, meta={"days": days})
    return json_ok({"days": days})


# ---------------------------------------------------------------------------
# Incident Options
# ---------------------------------------------------------------------------
@csrf_exempt
@admin_required()
@require_http_methods(["GET", "PUT"])
def options_view(request):
    org_id = request.gate.organization_id
    if request.method == "GET":
        return json_ok(org_services.read_options(org_id))

    try:
        body = parse_json_body(request)
    except InvalidJSON as exc:
        return json_error(str(exc))
    try:
        options = org_services.update_options(org_id, body)
    except OrganizationError as exc:
        return json_error(str(exc), status=exc.status)
    _audit(request, audit.OPTIONS_UPDATE, meta={group: len(values) for group, values in options.items()})
    return json_ok(options)


# ---------------------------------------------------------------------------
# Mirror Recovery
# ---------------------------------------------------------------------------
@csrf_exempt
@superadmin_tenant_required
@require_POST
def recover_view(request):
    """Re-import both mirror sheets into the tenant named by ``?domain=``."""
    try:
        organization = org_services.get_organization(request.gate.organization_id)
    except OrganizationError as exc:
        return json_error(str(exc), status=exc.status)

    mirror = get_mirror()
    missing = mirror.missing_configuration()
    if missing:
        return json_error(f"Sheets credentials missing: {', '.join(missing)}", status=500)
    try:
        report = recover_organization(mirror, organization)
    except MirrorWriteError as exc:
        logger.error("Mirror recovery failed", extra={"event": "mirror_recovery_failed"})
        return json_error(str(exc), status=502)

    if report.total == 0:
        return json_error("No data found in Google Sheets", status=404)
    _audit(request, audit.INCIDENTS_RECOVER, meta=report.as_dict())
    return json_ok(report.as_dict())
