"""Authentication views: Google sign-in and the mobile sign-in handoff."""
import logging
from urllib.parse import quote, urlencode

from django.conf import settings
from django.contrib.auth import login, logout
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.cache import never_cache
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from django_ratelimit.decorators import ratelimit

from tracktally.http import InvalidJSON, json_error, json_ok, parse_json_body
from . import mobile_auth, oidc
from .identity import SessionIdentity, get_identity, store_identity
from .signin import SignInRejected, resolve_sign_in

logger = logging.getLogger(__name__)

AUTH_BACKEND = "django.contrib.auth.backends.ModelBackend"


def _auth_not_configured():
    if not settings.MISSING_AUTH_ENV:
        return None
    missing = ", ".join(settings.MISSING_AUTH_ENV)
    return json_error(f"Authentication not configured. Missing env vars: {missing}", status=503)


def _safe_next(request, value):
    if value and url_has_allowed_host_and_scheme(
        value, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return value
    return settings.LOGIN_REDIRECT_URL


def _base_url(request):
    return settings.PUBLIC_BASE_URL or request.build_absolute_uri("/").rstrip("/")


# ---------------------------------------------------------------------------
# Google sign-in
# ---------------------------------------------------------------------------
@require_GET
def login_view(request):
    unavailable = _auth_not_configured()
    if unavailable:
        return unavailable
    next_path = _safe_next(request, request.GET.get("next"))
    return redirect(oidc.build_authorization_url(request, next_path))


@never_cache
@require_GET
def callback_view(request):
    unavailable = _auth_not_configured()
    if unavailable:
        return unavailable

    expected_state = request.session.pop(oidc.SESSION_STATE_KEY, None)
    nonce = request.session.pop(oidc.SESSION_NONCE_KEY, None)
    next_path = request.session.pop(oidc.SESSION_NEXT_KEY, settings.LOGIN_REDIRECT_URL)

    if request.GET.get("error"):
        logger.warning("Identity provider returned an error",
                       extra={"event": "oidc_error", "error": request.GET["error"]})
        return json_error("Access denied.", status=401)

    state, code = request.GET.get("state"), request.GET.get("code")
    if not expected_state or state != expected_state or not code:
        return json_error("Invalid sign-in state.", status=400)

    try:
        tokens = oidc.exchange_code(request, code)
        profile = oidc.verify_id_token(tokens["id_token"], nonce)
    except oidc.OIDCError as exc:
        logger.warning("OIDC verification failed", extra={"event": "oidc_failed", "detail": str(exc)})
        return json_error("Access denied.", status=401)

    try:
        teacher = resolve_sign_in(profile)
    except SignInRejected:
        return json_error("Access denied.", status=401)

    login(request, teacher, backend=AUTH_BACKEND)
    store_identity(request, SessionIdentity.from_teacher(teacher))
    return redirect(next_path)


@require_POST
def logout_view(request):
    logout(request)
    return redirect(settings.LOGOUT_REDIRECT_URL)


# ---------------------------------------------------------------------------
# Mobile handoff
# ---------------------------------------------------------------------------
@csrf_exempt
@ratelimit(key="ip", rate="10/m", method="POST", block=True)
@require_POST
def mobile_start_view(request):
    unavailable = _auth_not_configured()
    if unavailable:
        return unavailable

    try:
        body = parse_json_body(request)
    except InvalidJSON:
        body = {}

    ticket = mobile_auth.create_ticket(body.get("redirectPath"))
    finish = f"{reverse('mobile_auth:finish')}?{urlencode({'state': ticket.state})}"
    auth_url = f"{_base_url(request)}{reverse('accounts:login')}?{urlencode({'next': finish})}"
    return json_ok({
        "state": ticket.state,
        "authUrl": auth_url,
        "redirectPath": ticket.redirect_path,
        "expiresAt": ticket.expires_at.isoformat(),
    })


@never_cache
@require_GET
def mobile_finish_view(request):
    unavailable = _auth_not_configured()
    if unavailable:
        return unavailable

    state = request.GET.get("state")
    if not state:
        return json_error("Missing state parameter.", status=400)
    if get_identity(request) is None:
        return json_error("Session not found.", status=401)
    session_key = request.session.session_key
    if not session_key:
        return json_error("Missing session token.", status=401)

    if mobile_auth.bind_session(state, session_key) is None:
        return json_error("State expired or invalid.", status=410)
    transfer_token = mobile_auth.issue_transfer_token(state)
    if transfer_token is None:
        logger.error("Transfer token could not be issued", extra={"event": "mobile_transfer_failed"})
        return json_error("Could not issue transfer token.", status=500)

    target = f"{settings.MOBILE_APP_SCHEME}://auth-complete?transfer={quote(transfer_token)}"
    response = render(request, "accounts/mobile_finish.html", {"target_url": target})
    response["Cache-Control"] = "no-store"
    return response


@never_cache
@require_GET
def mobile_session_view(request):
    unavailable = _auth_not_configured()
    if unavailable:
        return unavailable

    transfer = request.GET.get("transfer")
    if not transfer:
        return json_error("Missing transfer token.", status=400)

    result = mobile_auth.consume_transfer_token(transfer)
    if result is None:
        return json_error("Transfer token invalid or expired.", status=410)

    session_key, redirect_path = result
    response = redirect(f"{_base_url(request)}{redirect_path}")
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        session_key,
        max_age=settings.SESSION_COOKIE_AGE,
        path="/",
        secure=settings.SESSION_COOKIE_SECURE,
        httponly=True,
        samesite="Lax",
    )
    return response
