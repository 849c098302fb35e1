"""Access control decorators for the admin and super-admin JSON API."""
from dataclasses import replace
from functools import wraps

from accounts.gate import apply_headers, authorize
from organizations.exceptions import OrganizationError
from organizations.services import requested_domain_from, resolve_organization_id
from tracktally.http import json_error

ADMIN_ROLES = ("admin", "superadmin")


def _tenant_view(view_func, roles):
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        result = authorize(request, roles, "admin")
        if result.error is not None:
            return result.error
        ctx = result.context
        try:
            organization_id = resolve_organization_id(
                ctx.identity, ctx.organization_id, requested_domain_from(request)
            )
        except OrganizationError as exc:
            return json_error(str(exc), status=exc.status, headers=ctx.rate_headers)
        request.gate = replace(ctx, organization_id=str(organization_id))
        return apply_headers(view_func(request, *args, **kwargs), ctx.rate_headers)
    return _wrapped


def admin_required(allow_superadmin=True):
    """
    Restrict a view to tenant admins (and super-admins with ``?domain=``).

    The view sees the effective tenant as ``request.gate.organization_id``.
    """
    roles = ADMIN_ROLES if allow_superadmin else ("admin",)

    def decorator(view_func):
        return _tenant_view(view_func, roles)
    return decorator


def superadmin_tenant_required(view_func):
    """Super-admin only, acting on the organization named by ``?domain=``."""
    return _tenant_view(view_func, ("superadmin",))


def superadmin_required(view_func):
    """Super-admin only, no organization binding (tenant CRUD)."""
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        result = authorize(request, ("superadmin",), "admin", require_organization=False)
        if result.error is not None:
            return result.error
        request.gate = result.context
        return apply_headers(view_func(request, *args, **kwargs), result.context.rate_headers)
    return _wrapped
