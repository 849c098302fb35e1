"""Teacher-facing incident API."""
import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from accounts.gate import authorize
from organizations.services import read_options
from tracktally.http import json_error, json_ok
from .pipeline import IncidentPipeline, IngestionError

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
def log_incident_view(request):
    """Record one incident or commendation. Replays of the same uuid are no-ops."""
    try:
        result = IncidentPipeline().ingest(request)
    except IngestionError as exc:
        if exc.response is not None:
            return exc.response
        if exc.status >= 500:
            logger.error("Incident submission failed", extra={"event": "incident_failed",
                                                              "status": exc.status})
        return json_error(exc.message, status=exc.status)
    logger.info("Incident logged", extra={"event": "incident_logged", "uuid": result.uuid,
                                          "created": result.created, "notified": result.notified})
    return json_ok(headers=result.rate_headers)


@require_GET
def options_view(request):
    result = authorize(request, ("teacher", "admin"), rate_scope=None)
    if result.error is not None:
        return result.error
    return json_ok(read_options(result.context.organization_id))
