"""
Organization lookups, CRUD and the per-request tenant resolver.

Every admin view resolves its effective organization through
``resolve_organization_id`` before touching tenant data. Organization ids
sent by clients are never used directly.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from .exceptions import OrganizationConflict, OrganizationNotFound, OrganizationUnavailable
from .models import Organization, Setting, normalize_domain

logger = logging.getLogger(__name__)

SUPERADMIN = "superadmin"

MAX_OPTIONS_PER_LIST = 24
OPTION_KEY_PREFIX = "incident_options:"

DEFAULT_INCIDENT_OPTIONS = {
    "levels": ["Minor", "Major"],
    "categories": [
        "Disruption",
        "Non-compliance",
        "Unsafe play",
        "Physical contact",
        "Defiance",
        "Tech misuse",
        "Bullying",
        "Other",
    ],
    "locations": ["Classroom", "Yard", "Specialist", "Transition", "Online"],
    "actions": ["Redirect", "Time out", "Restorative chat", "Parent contact", "Office referral"],
}


# ---------------------------------------------------------------------------
# Tenant resolution
# ---------------------------------------------------------------------------
def resolve_organization_id(identity, base_organization_id, requested_domain=None):
    """
    Effective organization id for a request.

    A super-admin naming a domain impersonates that organization; an unknown
    domain is an error, never a fallback. Everyone else gets their bound
    organization or ``OrganizationUnavailable``.
    """
    if identity.role == SUPERADMIN and requested_domain:
        org = get_organization_by_domain(requested_domain)
        if org is None:
            raise OrganizationNotFound()
        return org.id
    if not base_organization_id:
        raise OrganizationUnavailable()
    return base_organization_id


def requested_domain_from(request):
    """``?domain=`` wins over the legacy ``?impersonate=`` parameter."""
    value = request.GET.get("domain") or request.GET.get("impersonate") or ""
    return normalize_domain(value) or None


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------
def get_organization_by_domain(domain):
    domain = normalize_domain(domain)
    if not domain:
        return None
    return Organization.objects.filter(domain=domain).first()


def get_organization(organization_id):
    try:
        return Organization.objects.get(pk=organization_id)
    except (Organization.DoesNotExist, ValidationError, ValueError):
        raise OrganizationNotFound()


def list_organizations():
    return [
        serialize_organization(org, options=read_options(org.id))
        for org in Organization.objects.order_by("name")
    ]


def create_organization(name, domain, options=None, lms_provider=None):
    domain = normalize_domain(domain)
    name = (name or "").strip()
    if not name or not domain:
        raise OrganizationConflict("Name and domain are required.")
    if Organization.objects.filter(domain=domain).exists():
        raise OrganizationConflict("An organization already exists for that domain.")
    try:
        with transaction.atomic():
            org = Organization.objects.create(name=name, domain=domain, lms_provider=lms_provider)
            write_options(org, normalize_options(options))
    except IntegrityError:
        raise OrganizationConflict("An organization already exists for that domain.")
    logger.info("Organization created", extra={"event": "organization_created",
                                               "organization_id": str(org.id),
                                               "domain": org.domain})
    return org


def update_organization(organization_id, name=None, domain=None, active=None,
                        lms_provider=None, options=None):
    org = get_organization(organization_id)
    update_fields = []
    if name and name.strip():
        org.name = name.strip()
        update_fields.append("name")
    if domain and domain.strip():
        org.domain = normalize_domain(domain)
        update_fields.append("domain")
    if active is not None:
        org.active = active
        update_fields.append("active")
    if lms_provider in Organization.LmsProvider.values:
        org.lms_provider = lms_provider
        update_fields.append("lms_provider")
    try:
        with transaction.atomic():
            if update_fields:
                org.save(update_fields=update_fields + ["updated_at"])
            if options is not None:
                write_options(org, normalize_options(options))
    except IntegrityError:
        raise OrganizationConflict("An organization already exists for that domain.")
    return org


def delete_organization(organization_id):
    org = get_organization(organization_id)
    try:
        org.delete()
    except ProtectedError:
        raise OrganizationConflict("Cannot delete a school that still has incident records.")
    logger.info("Organization deleted", extra={"event": "organization_deleted",
                                               "organization_id": str(organization_id)})


def serialize_organization(org, options=None):
    data = {
        "id": str(org.id),
        "name": org.name,
        "domain": org.domain,
        "active": org.active,
        "lmsProvider": org.lms_provider,
        "createdAt": org.created_at.isoformat(),
        "updatedAt": org.updated_at.isoformat(),
    }
    if options is not None:
        data["options"] = options
    return data


# ---------------------------------------------------------------------------
# Incident option lists
# ---------------------------------------------------------------------------
def _normalize_list(values):
    if not isinstance(values, (list, tuple)):
        return []
    cleaned = [str(v).strip() for v in values if isinstance(v, str)]
    return [v for v in cleaned if v][:MAX_OPTIONS_PER_LIST]


def normalize_options(options=None):
    """Trim, drop blanks, cap each list; empty lists fall back to defaults."""
    options = options if isinstance(options, dict) else {}
    normalized = {}
    for group, defaults in DEFAULT_INCIDENT_OPTIONS.items():
        values = _normalize_list(options.get(group))
        normalized[group] = values or list(defaults)
    return normalized


def _options_key(organization_id):
    return f"{OPTION_KEY_PREFIX}{organization_id}"


def read_options(organization_id):
    setting = Setting.objects.filter(key=_options_key(organization_id)).first()
    if setting is None:
        return normalize_options()
    return normalize_options(setting.value)


def write_options(organization, options):
    Setting.objects.update_or_create(
        key=_options_key(organization.pk),
        defaults={"value": options, "organization": organization},
    )
    return options


def update_options(organization_id, options):
    org = get_organization(organization_id)
    return write_options(org, normalize_options(options))
