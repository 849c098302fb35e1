"""Super-admin API – school (organization) management."""
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from auditlog import services as audit
from dashboard.decorators import superadmin_required
from tracktally.http import InvalidJSON, json_error, json_ok, parse_json_body
from . import services
from .exceptions import OrganizationError


@csrf_exempt
@superadmin_required
@require_http_methods(["GET", "POST"])
def schools_view(request):
    if request.method == "GET":
        return json_ok(services.list_organizations())

    try:
        body = parse_json_body(request)
    except InvalidJSON as exc:
        return json_error(str(exc))

    name, domain = body.get("name"), body.get("domain")
    if not isinstance(name, str) or not name.strip() or not isinstance(domain, str) or not domain.strip():
        return json_error("Name and domain are required.")

    options = body.get("options") if isinstance(body.get("options"), dict) else None
    lms_provider = body.get("lmsProvider")
    if lms_provider not in services.Organization.LmsProvider.values:
        lms_provider = None
    try:
        org = services.create_organization(name, domain, options=options, lms_provider=lms_provider)
    except OrganizationError as exc:
        return json_error(str(exc), status=exc.status)

    audit.log_event(request, audit.ORGANIZATION_CREATE, performed_by=request.gate.identity.email,
                    organization_id=org.id, meta={"domain": org.domain})
    return json_ok(services.serialize_organization(org, options=services.read_options(org.id)),
                   status=201)


@csrf_exempt
@superadmin_required
@require_http_methods(["PATCH", "DELETE"])
def school_detail_view(request, organization_id):
    if request.method == "DELETE":
        try:
            services.delete_organization(organization_id)
        except OrganizationError as exc:
            return json_error(str(exc), status=exc.status)
        audit.log_event(request, audit.ORGANIZATION_DELETE, performed_by=request.gate.identity.email,
                        meta={"organization_id": str(organization_id)})
        return json_ok()

    try:
        body = parse_json_body(request)
    except InvalidJSON as exc:
        return json_error(str(exc))

    name = body.get("name")
    domain = body.get("domain")
    active = body.get("active")
    options = body.get("options")
    try:
        org = services.update_organization(
            organization_id,
            name=name if isinstance(name, str) else None,
            domain=domain if isinstance(domain, str) else None,
            active=active if isinstance(active, bool) else None,
            lms_provider=body.get("lmsProvider"),
            options=options if isinstance(options, dict) else None,
        )
    except OrganizationError as exc:
        return json_error(str(exc), status=exc.status)

    audit.log_event(request, audit.ORGANIZATION_UPDATE, performed_by=request.gate.identity.email,
                    organization_id=org.id, meta={"fields": sorted(body.keys())})
    return json_ok(services.serialize_organization(org, options=services.read_options(org.id)))
