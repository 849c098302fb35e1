"""Teacher-facing roster API."""
from django.views.decorators.http import require_GET

from accounts.gate import authorize
from tracktally.http import json_ok
from .services import serialize_classroom, visible_classrooms


@require_GET
def roster_view(request):
    result = authorize(request, ("teacher", "admin"), rate_scope=None)
    if result.error is not None:
        return result.error
    identity = result.context.identity
    classrooms = visible_classrooms(
        identity.organization_id, identity.email, see_all=identity.role == "admin"
    )
    return json_ok([serialize_classroom(c) for c in classrooms])
