from datetime import timedelta

import pytest
from django.core.management import call_command
from django.db import DatabaseError
from django.utils import timezone

from incidents.models import Incident
from incidents.retention import RETENTION_KEY, RetentionEnforcer
from organizations.models import Setting


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def retention(clock):
    return RetentionEnforcer(clock=clock)


@pytest.mark.django_db
class TestRetentionEnforcer:

    def test_default_window(self, retention):
        assert retention.get_retention_days() == 365

    def test_deletes_only_expired(self, retention, springfield, make_incident):
        old = make_incident(springfield, timestamp=timezone.now() - timedelta(days=400))
        fresh = make_incident(springfield, timestamp=timezone.now() - timedelta(days=10))
        assert retention.enforce() == 1
        assert not Incident.objects.filter(pk=old.pk).exists()
        assert Incident.objects.filter(pk=fresh.pk).exists()

    def test_throttled_within_interval(self, retention, clock, springfield, make_incident):
        assert retention.enforce() == 0
        make_incident(springfield, timestamp=timezone.now() - timedelta(days=400))
        clock.now += 30
        assert retention.enforce() is None
        assert Incident.objects.count() == 1
        clock.now += 31
        assert retention.enforce() == 1

    def test_force_bypasses_throttle(self, retention, springfield, make_incident):
        retention.enforce()
        make_incident(springfield, timestamp=timezone.now() - timedelta(days=400))
        assert retention.enforce(force=True) == 1

    def test_setting_is_cached(self, retention, clock):
        retention.get_retention_days()
        Setting.objects.create(key=RETENTION_KEY, value=30)
        assert retention.get_retention_days() == 365
        clock.now += 301
        assert retention.get_retention_days() == 30

    def test_set_retention_days_clamps_and_refreshes(self, retention):
        assert retention.set_retention_days(9999) == 3650
        assert retention.get_retention_days() == 3650
        assert retention.set_retention_days(0) == 1
        assert Setting.objects.get(key=RETENTION_KEY).value == 1

    def test_short_window(self, retention, springfield, make_incident):
        retention.set_retention_days(7)
        make_incident(springfield, timestamp=timezone.now() - timedelta(days=8))
        make_incident(springfield, timestamp=timezone.now() - timedelta(days=6))
        assert retention.enforce() == 1

    def test_database_failure_is_swallowed(self, retention, monkeypatch):
        def broken(*args, **kwargs):
            raise DatabaseError("connection lost")
        monkeypatch.setattr(RetentionEnforcer, "get_retention_days", broken)
        assert retention.enforce() == 0

    def test_unexpected_failure_is_swallowed(self, retention, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")
        monkeypatch.setattr(RetentionEnforcer, "get_retention_days", broken)
        assert retention.enforce() == 0

    def test_management_command(self, springfield, make_incident, capsys):
        make_incident(springfield, timestamp=timezone.now() - timedelta(days=400))
        call_command("enforce_retention")
        assert Incident.objects.count() == 0
        assert "Removed 1 incident(s)" in capsys.readouterr().out


@pytest.mark.django_db
class TestRetentionApi:

    def test_admin_reads_and_sets_window(self, signed_in, admin):
        client = signed_in(admin)
        assert client.get("/api/admin/incidents/retention/").json() == {"ok": True, "data": {"days": 365}}
        response = client.post("/api/admin/incidents/retention/", {"days": 90}, content_type="application/json")
        assert response.json() == {"ok": True, "data": {"days": 90}}
        assert Setting.objects.get(key=RETENTION_KEY).value == 90

    def test_out_of_range_rejected(self, signed_in, admin):
        response = signed_in(admin).post(
            "/api/admin/incidents/retention/", {"days": 5000}, content_type="application/json"
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("days: ")
