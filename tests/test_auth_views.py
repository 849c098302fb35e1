from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from django.conf import settings
from django.core.management import call_command
from django.test import Client
from django.utils import timezone

from accounts import mobile_auth, oidc
from accounts.identity import SESSION_IDENTITY_KEY
from accounts.models import MobileAuthTicket, Teacher
from accounts.signin import OIDCProfile


def _start_sign_in(client, next_path=None):
    url = "/auth/login/" + (f"?next={next_path}" if next_path else "")
    response = client.get(url)
    assert response.status_code == 302
    query = parse_qs(urlparse(response["Location"]).query)
    return query


@pytest.fixture
def google(monkeypatch):
    """Stub the identity provider; the test sets ``google.profile``."""
    class Stub:
        profile = None

    stub = Stub()
    monkeypatch.setattr(oidc, "exchange_code", lambda request, code: {"id_token": "token"})
    monkeypatch.setattr(oidc, "verify_id_token", lambda token, nonce: stub.profile)
    return stub


@pytest.mark.django_db
class TestGoogleSignIn:

    def test_login_redirects_to_google(self):
        query = _start_sign_in(Client())
        assert query["client_id"] == ["test-client-id"]
        assert query["scope"] == ["openid email profile"]
        assert "state" in query and "nonce" in query

    def test_callback_signs_in_and_snapshots_identity(self, google, springfield):
        client = Client()
        state = _start_sign_in(client, "/admin")["state"][0]
        google.profile = OIDCProfile("edna@springfield.edu.au", "springfield.edu.au", "Edna")

        response = client.get(f"/auth/callback/?state={state}&code=abc")
        assert response.status_code == 302
        assert response["Location"] == "/admin"
        identity = client.session[SESSION_IDENTITY_KEY]
        assert identity["email"] == "edna@springfield.edu.au"
        assert identity["organization_id"] == str(springfield.id)
        assert Teacher.objects.filter(email="edna@springfield.edu.au").exists()

    def test_callback_with_wrong_state(self, google, springfield):
        client = Client()
        _start_sign_in(client)
        response = client.get("/auth/callback/?state=forged&code=abc")
        assert response.status_code == 400

    def test_rejected_sign_in_is_generic(self, google, springfield):
        client = Client()
        state = _start_sign_in(client)["state"][0]
        google.profile = OIDCProfile("someone@gmail.com")
        response = client.get(f"/auth/callback/?state={state}&code=abc")
        assert response.status_code == 401
        assert response.json() == {"ok": False, "error": "Access denied."}
        assert SESSION_IDENTITY_KEY not in client.session

    def test_open_redirect_is_ignored(self, google, springfield):
        client = Client()
        state = _start_sign_in(client, "https://evil.test/")["state"][0]
        google.profile = OIDCProfile("edna@springfield.edu.au")
        response = client.get(f"/auth/callback/?state={state}&code=abc")
        assert response["Location"] == settings.LOGIN_REDIRECT_URL

    def test_not_configured(self, settings):
        settings.MISSING_AUTH_ENV = ["GOOGLE_CLIENT_ID"]
        response = Client().get("/auth/login/")
        assert response.status_code == 503
        assert "GOOGLE_CLIENT_ID" in response.json()["error"]


@pytest.mark.django_db
class TestMobileHandoff:

    def _start(self, client, body=None):
        response = client.post("/api/mobile/auth/start/", body or {}, content_type="application/json")
        assert response.status_code == 200
        return response.json()["data"]

    def test_full_handoff(self, signed_in, teacher):
        app = Client()
        started = self._start(app, {"redirectPath": "/admin"})
        assert started["redirectPath"] == "/admin"
        assert "/auth/login/?next=" in started["authUrl"]

        browser = signed_in(teacher)
        finish = browser.get("/api/mobile/auth/finish/", {"state": started["state"]})
        assert finish.status_code == 200
        assert "no-store" in finish["Cache-Control"]
        ticket = MobileAuthTicket.objects.get(state=started["state"])
        assert ticket.session_key == browser.session.session_key
        assert f"tracktally://auth-complete?transfer={ticket.transfer_token}".encode() in finish.content

        session = app.get("/api/mobile/auth/session/", {"transfer": ticket.transfer_token})
        assert session.status_code == 302
        assert session["Location"].endswith("/admin")
        assert session.cookies[settings.SESSION_COOKIE_NAME].value == browser.session.session_key

    def test_transfer_token_is_single_use(self, signed_in, teacher):
        started = self._start(Client())
        signed_in(teacher).get("/api/mobile/auth/finish/", {"state": started["state"]})
        token = MobileAuthTicket.objects.get(state=started["state"]).transfer_token
        assert Client().get("/api/mobile/auth/session/", {"transfer": token}).status_code == 302
        assert Client().get("/api/mobile/auth/session/", {"transfer": token}).status_code == 410

    def test_unknown_redirect_falls_back(self):
        assert self._start(Client(), {"redirectPath": "https://evil.test"})["redirectPath"] == "/teacher"

    def test_finish_requires_state(self, signed_in, teacher):
        assert signed_in(teacher).get("/api/mobile/auth/finish/").status_code == 400

    def test_finish_requires_signed_in_browser(self):
        started = self._start(Client())
        response = Client().get("/api/mobile/auth/finish/", {"state": started["state"]})
        assert response.status_code == 401

    def test_expired_ticket(self, signed_in, teacher):
        started = self._start(Client())
        MobileAuthTicket.objects.filter(state=started["state"]).update(
            expires_at=timezone.now() - timedelta(seconds=1)
        )
        response = signed_in(teacher).get("/api/mobile/auth/finish/", {"state": started["state"]})
        assert response.status_code == 410

    def test_session_requires_transfer(self):
        assert Client().get("/api/mobile/auth/session/").status_code == 400

    def test_transfer_needs_bound_session(self, db):
        ticket = mobile_auth.create_ticket()
        assert mobile_auth.issue_transfer_token(ticket.state) is None

    def test_prune_expired(self, db):
        stale = mobile_auth.create_ticket()
        MobileAuthTicket.objects.filter(pk=stale.pk).update(expires_at=timezone.now() - timedelta(hours=1))
        live = mobile_auth.create_ticket()
        call_command("prune_auth_tickets")
        assert list(MobileAuthTicket.objects.values_list("pk", flat=True)) == [live.pk]

    def test_start_is_throttled_per_ip(self):
        client = Client()
        for _ in range(10):
            self._start(client)
        response = client.post("/api/mobile/auth/start/", {}, content_type="application/json")
        assert response.status_code == 429
