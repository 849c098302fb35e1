"""
Sign-in resolution: decide whether a verified Google profile may sign in,
and mint or refresh its ``Teacher`` row.

Rejections raise ``SignInRejected`` with a machine-readable reason that is
logged; the browser only ever sees a generic "Access denied.".
"""
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from django.conf import settings
from django.db import DatabaseError, transaction

from organizations.services import get_organization_by_domain
from .models import Teacher

logger = logging.getLogger(__name__)

DOMAIN_MISMATCH = "domainMismatch"
MISSING_DOMAIN = "missingDomain"
ORGANIZATION_MISSING = "organizationMissing"
EXCEPTION_MISSING_TEACHER = "exceptionMissingTeacher"
NOT_PROVISIONED = "notProvisioned"
INACTIVE = "inactive"


class SignInRejected(Exception):
    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class OIDCProfile:
    email: Optional[str]
    hosted_domain: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class SignInPolicy:
    allowed_domains: FrozenSet[str] = field(default_factory=frozenset)
    admin_emails: FrozenSet[str] = field(default_factory=frozenset)
    super_admin_emails: FrozenSet[str] = field(default_factory=frozenset)
    exception_emails: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls):
        return cls(
            allowed_domains=frozenset(settings.ALLOWED_GOOGLE_DOMAINS),
            admin_emails=frozenset(settings.ADMIN_EMAILS),
            super_admin_emails=frozenset(settings.SUPER_ADMIN_EMAILS),
            exception_emails=frozenset(settings.EXCEPTION_EMAILS),
        )


def compute_role(email, policy, stored_role=None):
    """super-admin list > admin list > stored admin/teacher role > teacher."""
    if email in policy.super_admin_emails:
        return Teacher.Role.SUPERADMIN
    if email in policy.admin_emails:
        return Teacher.Role.ADMIN
    if stored_role == Teacher.Role.ADMIN:
        return Teacher.Role.ADMIN
    return Teacher.Role.TEACHER


def _reject(reason, email, **context):
    logger.warning("Sign-in blocked", extra={
        "event": "sign_in_blocked",
        "reason": reason,
        "email": email or "unknown",
        **context,
    })
    raise SignInRejected(reason)


def resolve_sign_in(profile, policy=None):
    """
    Return the active ``Teacher`` for ``profile`` or raise ``SignInRejected``.

    With no allowed domain configured every sign-in is rejected, super-admins
    included. Role is recomputed from the allowlists on every sign-in.
    """
    policy = policy or SignInPolicy.from_settings()
    email = (profile.email or "").strip().lower()
    hosted_domain = (profile.hosted_domain or "").strip().lower() or None

    if not email:
        _reject(DOMAIN_MISMATCH, email)
    if not policy.allowed_domains:
        _reject(MISSING_DOMAIN, email)

    try:
        existing = Teacher.objects.select_related("organization").filter(email=email).first()
    except DatabaseError:
        logger.exception("Account lookup failed during sign-in", extra={"email": email})
        _reject(NOT_PROVISIONED, email)

    role = compute_role(email, policy, existing.role if existing else None)

    if role == Teacher.Role.SUPERADMIN:
        organization = None
    elif email in policy.exception_emails:
        if existing is None or existing.organization_id is None:
            _reject(EXCEPTION_MISSING_TEACHER, email)
        organization = existing.organization
    else:
        email_domain = email.rsplit("@", 1)[-1] if "@" in email else ""
        if email_domain not in policy.allowed_domains:
            _reject(DOMAIN_MISMATCH, email, hosted_domain=hosted_domain)
        if hosted_domain and hosted_domain != email_domain:
            _reject(DOMAIN_MISMATCH, email, hosted_domain=hosted_domain)
        organization = get_organization_by_domain(email_domain)
        if organization is None:
            _reject(ORGANIZATION_MISSING, email, domain=email_domain)
        if not organization.active:
            _reject(INACTIVE, email, domain=email_domain)

    display_name = (profile.name or "").strip()

    try:
        with transaction.atomic():
            teacher = _upsert_teacher(existing, email, role, organization, display_name)
    except DatabaseError:
        logger.exception("Account provisioning failed", extra={"email": email})
        _reject(NOT_PROVISIONED, email)

    if not teacher.is_active:
        _reject(INACTIVE, email)

    logger.info("Sign-in resolved", extra={
        "event": "sign_in_resolved",
        "role": teacher.role,
        "organization_id": str(teacher.organization_id) if teacher.organization_id else None,
    })
    return teacher


def _upsert_teacher(existing, email, role, organization, display_name):
    if existing is None:
        return Teacher.objects.create_user(
            email=email,
            role=role,
            organization=organization,
            display_name=display_name,
        )

    changed = []
    if existing.role != role:
        existing.role = role
        changed.append("role")
    org_id = organization.pk if organization else None
    if existing.organization_id != org_id:
        existing.organization = organization
        changed.append("organization")
    if display_name and existing.display_name != display_name:
        existing.display_name = display_name
        changed.append("display_name")
    if changed:
        existing.save(update_fields=changed + ["updated_at"])
    return existing
