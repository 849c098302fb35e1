"""
Authorization gate shared by every privileged endpoint.

``authorize`` runs the checks in a fixed order and stops at the first
failure: session snapshot, domain enforcement, role, organization binding,
then the IP bucket and the identity bucket. On success the caller gets a
``GateContext`` whose ``rate_headers`` belong on the eventual response.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional

from django.conf import settings
from django.http import HttpResponse

from auditlog.services import get_client_ip
from tracktally.http import json_error
from tracktally.ratelimit import build_rate_limit_headers, get_policy, limiter as default_limiter
from .identity import SessionIdentity, get_identity

IP_LIMIT_MESSAGE = "Too many requests from this address. Please slow down."
IDENTITY_LIMIT_MESSAGES = {
    "admin": "Too many admin requests. Please slow down.",
    "incident": "Too many incidents submitted. Please slow down.",
}


@dataclass(frozen=True)
class GateContext:
    identity: SessionIdentity
    organization_id: Optional[str]
    rate_headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class GateResult:
    context: Optional[GateContext] = None
    error: Optional[HttpResponse] = None

    @property
    def allowed(self):
        return self.error is None


def _domain_allowed(identity):
    allowed = settings.ALLOWED_GOOGLE_DOMAINS
    if not allowed or identity.is_superadmin:
        return True
    if identity.email in settings.EXCEPTION_EMAILS:
        return True
    return identity.email_domain in allowed


def authorize(request, roles, rate_scope, require_organization=True, limiter=None):
    identity = get_identity(request)
    if identity is None:
        return GateResult(error=json_error("Unauthorized", status=401))

    if not _domain_allowed(identity):
        return GateResult(error=json_error("Forbidden", status=403))

    if identity.role not in roles:
        return GateResult(error=json_error("Forbidden", status=403))

    if require_organization and not identity.is_superadmin and not identity.organization_id:
        return GateResult(error=json_error("Organization not set", status=403))

    if rate_scope is None:
        return GateResult(context=GateContext(identity=identity, organization_id=identity.organization_id))

    limiter = limiter or default_limiter
    limit, window = get_policy(rate_scope)

    ip = get_client_ip(request) or "unknown"
    ip_result = limiter.hit(f"{rate_scope}:ip:{ip}", limit, window)
    if ip_result.limited:
        return GateResult(error=json_error(
            IP_LIMIT_MESSAGE, status=429, headers=build_rate_limit_headers(limit, ip_result),
        ))

    identity_result = limiter.hit(f"{rate_scope}:user:{identity.email}", limit, window)
    if identity_result.limited:
        message = IDENTITY_LIMIT_MESSAGES.get(rate_scope, "Too many requests. Please slow down.")
        return GateResult(error=json_error(
            message, status=429, headers=build_rate_limit_headers(limit, identity_result),
        ))

    return GateResult(context=GateContext(
        identity=identity,
        organization_id=identity.organization_id,
        rate_headers=build_rate_limit_headers(limit, identity_result),
    ))


def apply_headers(response, headers):
    for key, value in (headers or {}).items():
        response[key] = value
    return response
