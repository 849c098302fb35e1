import logging

import pytest
from django.test import Client

from tests.fakes import RecordingMirror
from tracktally.log_filters import RedactPIIFilter, mask_emails


@pytest.mark.django_db
class TestHealth:

    def test_healthy(self):
        response = Client().get("/api/health/")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["ok"]
        assert body["checks"]["sheets"]["ok"]

    def test_degraded_when_mirror_fails(self):
        RecordingMirror.fail_with = "Requested entity was not found."
        response = Client().get("/api/health/")
        assert response.status_code == 503
        sheets = response.json()["checks"]["sheets"]
        assert not sheets["ok"]
        assert sheets["error"] == "Requested entity was not found."

    def test_degraded_when_mirror_not_configured(self):
        RecordingMirror.missing = ["SHEET_ID"]
        response = Client().get("/api/health/")
        assert response.status_code == 503
        assert response.json()["status"] == "degraded"


class TestRedactPIIFilter:

    def _record(self, msg, args=(), **extra):
        record = logging.LogRecord("tracktally", logging.INFO, __file__, 1, msg, args, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_masks_addresses(self):
        assert mask_emails("from jane.doe@school.edu") == "from j***@school.edu"

    def test_masks_formatted_message(self):
        record = self._record("Notified %s", ("hoover@springfield.edu.au",))
        assert RedactPIIFilter().filter(record)
        assert record.getMessage() == "Notified h***@springfield.edu.au"

    def test_drops_pii_extras(self):
        record = self._record("Sign-in blocked", email="edna@springfield.edu.au", reason="inactive")
        RedactPIIFilter().filter(record)
        assert not hasattr(record, "email")
        assert record.reason == "inactive"
