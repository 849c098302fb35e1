"""
Cross-device sign-in handoff for the native app.

The app starts a ticket and opens ``authUrl`` in the system browser. After
Google sign-in the browser hits ``finish``, which binds the browser's
session key to the ticket and bounces back into the app with a one-time
transfer token. The app exchanges that token at ``session`` for the session
cookie. Each step requires the previous one and refreshes the expiry.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from .models import MobileAuthTicket

logger = logging.getLogger(__name__)

ALLOWED_REDIRECTS = ("/teacher", "/admin", "/super-admin")
DEFAULT_REDIRECT = "/teacher"


def _token():
    return secrets.token_hex(24)


def _expiry():
    return timezone.now() + timedelta(minutes=settings.MOBILE_AUTH_TOKEN_TTL_MINUTES)


def sanitize_redirect_path(path):
    if not isinstance(path, str):
        return DEFAULT_REDIRECT
    path = path.strip()
    if not path.startswith("/"):
        return DEFAULT_REDIRECT
    for base in ALLOWED_REDIRECTS:
        if path == base or path.startswith(base + "/"):
            return path
    return DEFAULT_REDIRECT


def _live_tickets():
    return MobileAuthTicket.objects.filter(consumed_at__isnull=True, expires_at__gt=timezone.now())


def create_ticket(redirect_path=None):
    return MobileAuthTicket.objects.create(
        state=_token(),
        redirect_path=sanitize_redirect_path(redirect_path),
        expires_at=_expiry(),
    )


def bind_session(state, session_key):
    """state -> session bound. None when the ticket is gone or expired."""
    if not state or not session_key:
        return None
    ticket = _live_tickets().filter(state=state).first()
    if ticket is None:
        return None
    ticket.session_key = session_key
    ticket.expires_at = _expiry()
    ticket.save(update_fields=["session_key", "expires_at"])
    return ticket


def issue_transfer_token(state):
    """session bound -> transfer issued."""
    if not state:
        return None
    ticket = _live_tickets().filter(state=state, session_key__isnull=False).first()
    if ticket is None:
        return None
    ticket.transfer_token = _token()
    ticket.expires_at = _expiry()
    ticket.save(update_fields=["transfer_token", "expires_at"])
    return ticket.transfer_token


def consume_transfer_token(token):
    """transfer issued -> consumed. Returns ``(session_key, redirect_path)`` once."""
    if not token:
        return None
    candidates = _live_tickets().filter(transfer_token=token, session_key__isnull=False)
    ticket = candidates.first()
    if ticket is None:
        return None
    # Only one exchange can claim the ticket.
    claimed = candidates.filter(pk=ticket.pk).update(consumed_at=timezone.now(), transfer_token=None)
    if not claimed:
        return None
    return ticket.session_key, ticket.redirect_path


def prune_expired_tickets(limit=100):
    stale = list(
        MobileAuthTicket.objects.filter(expires_at__lt=timezone.now())
        .values_list("pk", flat=True)[:limit]
    )
    if not stale:
        return 0
    deleted, _ = MobileAuthTicket.objects.filter(pk__in=stale).delete()
    logger.info("Pruned mobile auth tickets", extra={"event": "mobile_tickets_pruned", "count": deleted})
    return deleted
