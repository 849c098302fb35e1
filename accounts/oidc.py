"""Google OpenID Connect: authorization redirect, code exchange, ID token checks."""
import secrets
from urllib.parse import urlencode

import httpx
from django.conf import settings
from django.urls import reverse
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from .signin import OIDCProfile

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

SESSION_STATE_KEY = "oidc_state"
SESSION_NONCE_KEY = "oidc_nonce"
SESSION_NEXT_KEY = "oidc_next"


class OIDCError(Exception):
    pass


def redirect_uri(request):
    return settings.GOOGLE_REDIRECT_URI or request.build_absolute_uri(reverse("accounts:callback"))


def build_authorization_url(request, next_path="/teacher"):
    """Start the flow; ``state`` and ``nonce`` are kept in the session."""
    state = secrets.token_urlsafe(24)
    nonce = secrets.token_urlsafe(24)
    request.session[SESSION_STATE_KEY] = state
    request.session[SESSION_NONCE_KEY] = nonce
    request.session[SESSION_NEXT_KEY] = next_path
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri(request),
        "response_type": "code",
        "scope": "openid email profile",
        "state": state,
        "nonce": nonce,
        "prompt": "select_account",
    }
    if len(settings.ALLOWED_GOOGLE_DOMAINS) == 1:
        params["hd"] = settings.ALLOWED_GOOGLE_DOMAINS[0]
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


def exchange_code(request, code):
    try:
        response = httpx.post(
            TOKEN_URL,
            data={
                "code": code,
                "client_id": settings.GOOGLE_CLIENT_ID,
                "client_secret": settings.GOOGLE_CLIENT_SECRET,
                "redirect_uri": redirect_uri(request),
                "grant_type": "authorization_code",
            },
            timeout=10.0,
        )
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise OIDCError(f"Token exchange failed: {exc}") from exc
    tokens = response.json()
    if "id_token" not in tokens:
        raise OIDCError("Token response did not include an id_token")
    return tokens


def verify_id_token(token, expected_nonce):
    """Signature, audience and expiry via google-auth; issuer, e-mail and nonce here."""
    try:
        claims = id_token.verify_oauth2_token(
            token, google_requests.Request(), settings.GOOGLE_CLIENT_ID
        )
    except ValueError as exc:
        raise OIDCError(f"Invalid ID token: {exc}") from exc

    if claims.get("iss") not in GOOGLE_ISSUERS:
        raise OIDCError("Invalid issuer")
    if not claims.get("email_verified"):
        raise OIDCError("Email not verified by Google")
    if not expected_nonce or claims.get("nonce") != expected_nonce:
        raise OIDCError("Nonce mismatch")

    return OIDCProfile(
        email=claims.get("email"),
        hosted_domain=claims.get("hd"),
        name=claims.get("name"),
    )
