"""JSON envelope helpers shared by every API view."""
import json

from django.http import JsonResponse


class InvalidJSON(Exception):
    """Request body is not a JSON object."""


def json_ok(data=None, status=200, headers=None):
    payload = {"ok": True}
    if data is not None:
        payload["data"] = data
    return JsonResponse(payload, status=status, headers=headers)


def json_error(message, status=400, headers=None):
    return JsonResponse({"ok": False, "error": message}, status=status, headers=headers)


def parse_json_body(request, body=None):
    """
    Decode the request body as a JSON object.

    The ``application/json`` content type is required so that plain HTML
    forms posted cross-site can never reach a JSON endpoint.
    """
    content_type = request.META.get("CONTENT_TYPE", "")
    if not content_type.startswith("application/json"):
        raise InvalidJSON("Expected an application/json body.")
    raw = request.body if body is None else body
    try:
        data = json.loads(raw or b"{}")
    except (UnicodeDecodeError, ValueError):
        raise InvalidJSON("Invalid JSON body.")
    if not isinstance(data, dict):
        raise InvalidJSON("Invalid JSON body.")
    return data
