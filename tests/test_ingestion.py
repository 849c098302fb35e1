import json
import uuid

import pytest
from django.core import mail
from django.core.mail import BadHeaderError
from django.test import Client

from incidents.models import Incident
from incidents.sheets import COMMENDATIONS_SHEET, INCIDENTS_SHEET
from tests.fakes import RecordingMirror

URL = "/api/log-incident/"


def _payload(**overrides):
    payload = {
        "studentId": "S-1001",
        "studentName": "Bart Simpson",
        "level": "Minor",
        "category": "Disruption",
        "location": "Classroom",
        "actionTaken": "Redirect",
        "note": "Talking during silent reading",
        "classCode": "4H",
        "uuid": str(uuid.uuid4()),
        "timestamp": "2026-03-02T09:15:00+11:00",
    }
    payload.update(overrides)
    return payload


def _post(client, payload, **extra):
    body = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
    return client.post(URL, data=body, content_type="application/json", **extra)


@pytest.fixture
def client(signed_in, teacher):
    return signed_in(teacher)


@pytest.mark.django_db
class TestLogIncident:

    def test_records_and_mirrors(self, client, teacher, classroom, student):
        payload = _payload()
        response = _post(client, payload)
        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert response["X-RateLimit-Limit"] == "30"
        assert response["X-RateLimit-Remaining"] == "29"

        incident = Incident.objects.get(uuid=payload["uuid"])
        assert incident.organization_id == teacher.organization_id
        assert incident.teacher_email == teacher.email
        assert incident.classroom == classroom

        row = RecordingMirror.rows[INCIDENTS_SHEET][0]
        assert len(row) == 12
        assert row[0] == payload["timestamp"]
        assert row[8] == teacher.email
        assert row[11] == payload["uuid"]

    def test_same_uuid_twice_is_recorded_once(self, client):
        payload = _payload()
        assert _post(client, payload).status_code == 200
        assert _post(client, dict(payload, note="edited on retry")).status_code == 200
        incident = Incident.objects.get(uuid=payload["uuid"])
        assert incident.note == "Talking during silent reading"
        assert Incident.objects.count() == 1

    def test_identity_comes_from_session(self, client, teacher):
        payload = _payload(teacherEmail="mallory@springfield.edu.au", organizationId=str(uuid.uuid4()))
        _post(client, payload)
        incident = Incident.objects.get(uuid=payload["uuid"])
        assert incident.teacher_email == teacher.email
        assert incident.organization_id == teacher.organization_id

    def test_commendation_goes_to_its_own_sheet(self, client):
        _post(client, _payload(type="commendation"))
        assert len(RecordingMirror.rows[COMMENDATIONS_SHEET]) == 1
        assert INCIDENTS_SHEET not in RecordingMirror.rows

    def test_defaults_are_filled(self, client):
        payload = _payload()
        del payload["uuid"], payload["timestamp"]
        response = _post(client, payload, HTTP_USER_AGENT="TrackTally-iOS/2.1")
        assert response.status_code == 200
        row = RecordingMirror.rows[INCIDENTS_SHEET][0]
        assert row[0]
        assert row[10] == "TrackTally-iOS/2.1"
        uuid.UUID(row[11])
        assert Incident.objects.filter(uuid=row[11]).exists()

    def test_html_is_stripped(self, client):
        payload = _payload(note="<script>alert(1)</script>Threw a <b>chair</b>  ")
        _post(client, payload)
        assert Incident.objects.get(uuid=payload["uuid"]).note == "alert(1)Threw a chair"

    def test_required_field_emptied_by_sanitizing(self, client):
        response = _post(client, _payload(studentName="<b></b>"))
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "Missing required field: studentName"}
        assert not Incident.objects.exists()

    def test_note_length_boundary(self, client):
        assert _post(client, _payload(note="x" * 600)).status_code == 200
        response = _post(client, _payload(note="x" * 601))
        assert response.status_code == 400
        assert response.json()["error"].startswith("note: ")

    def test_missing_required_field(self, client):
        payload = _payload()
        del payload["studentId"]
        response = _post(client, payload)
        assert response.status_code == 400
        assert response.json()["error"].startswith("studentId: ")

    def test_location_must_be_known(self, client):
        response = _post(client, _payload(location="Canteen"))
        assert response.status_code == 400
        assert response.json()["error"].startswith("location: ")

    def test_unclosed_tag_is_stripped(self, client):
        payload = _payload(note="hi <img src=x onerror=alert(1)")
        _post(client, payload)
        assert Incident.objects.get(uuid=payload["uuid"]).note == "hi"

    def test_non_string_values_rejected(self, client):
        response = _post(client, _payload(
            studentId=12345, studentName={"a": 1}, level=["Minor"], category=True, note=["hi"],
        ))
        assert response.status_code == 400
        assert response.json() == {"ok": False, "error": "studentId: Expected a string."}
        assert not Incident.objects.exists()
        assert RecordingMirror.rows == {}

    def test_list_note_rejected(self, client):
        response = _post(client, _payload(note=["hi"]))
        assert response.status_code == 400
        assert response.json()["error"] == "note: Expected a string."

    def test_malformed_uuid(self, client):
        response = _post(client, _payload(uuid="not-a-uuid"))
        assert response.status_code == 400
        assert response.json()["error"] == "uuid: Invalid uuid"

    def test_body_too_large(self, client):
        response = _post(client, _payload(note="x" * (11 * 1024)))
        assert response.status_code == 400
        assert response.json()["error"] == "Request body too large."

    def test_invalid_json(self, client):
        response = _post(client, "{not json")
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON body."

    def test_form_encoded_body_rejected(self, client):
        response = client.post(URL, data=_payload())
        assert response.status_code == 400
        assert response.json()["error"] == "Expected an application/json body."

    def test_anonymous_is_unauthorized(self, db):
        response = _post(Client(), _payload())
        assert response.status_code == 401
        assert not RecordingMirror.rows

    def test_super_admin_cannot_submit(self, signed_in, superadmin):
        assert _post(signed_in(superadmin), _payload()).status_code == 403

    def test_mirror_failure_is_502(self, client):
        RecordingMirror.fail_with = "The caller does not have permission"
        payload = _payload()
        response = _post(client, payload)
        assert response.status_code == 502
        assert response.json() == {"ok": False, "error": "The caller does not have permission"}
        # the database write happens first and is kept for the retry
        assert Incident.objects.filter(uuid=payload["uuid"]).exists()

    def test_mirror_not_configured(self, client):
        RecordingMirror.missing = ["SHEET_ID"]
        response = _post(client, _payload())
        assert response.status_code == 500
        assert response.json()["error"] == "Sheets credentials missing: SHEET_ID"

    def test_rate_limited_after_thirty(self, client):
        for _ in range(30):
            assert _post(client, _payload()).status_code == 200
        response = _post(client, _payload())
        assert response.status_code == 429
        assert response["X-RateLimit-Remaining"] == "0"
        assert int(response["Retry-After"]) > 0

    def test_unreadable_timestamp_falls_back(self, client):
        payload = _payload(timestamp="last tuesday")
        assert _post(client, payload).status_code == 200
        assert Incident.objects.filter(uuid=payload["uuid"]).exists()
        assert RecordingMirror.rows[INCIDENTS_SHEET][0][0] == "last tuesday"


@pytest.mark.django_db
class TestHomeroomNotification:

    def test_homeroom_teacher_is_mailed(self, client, homeroom, student):
        _post(client, _payload())
        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == [homeroom.email]
        assert message.subject == "[TrackTally] Incident logged for Bart Simpson"
        assert "Talking during silent reading" in message.body

    def test_no_mail_when_submitter_is_homeroom_teacher(self, signed_in, homeroom, student):
        _post(signed_in(homeroom), _payload())
        assert mail.outbox == []

    def test_no_mail_for_unknown_student(self, client, classroom):
        _post(client, _payload(studentId="S-9999"))
        assert mail.outbox == []

    def test_mail_failure_does_not_fail_request(self, client, student, settings):
        settings.EMAIL_BACKEND = "tests.fakes.FailingEmailBackend"
        response = _post(client, _payload())
        assert response.status_code == 200

    def test_unexpected_mail_error_does_not_fail_request(self, client, student, monkeypatch):
        def broken(*args, **kwargs):
            raise BadHeaderError("Header values can't contain newlines")
        monkeypatch.setattr("incidents.notifications.send_mail", broken)
        payload = _payload()
        response = _post(client, payload)
        assert response.status_code == 200
        assert Incident.objects.filter(uuid=payload["uuid"]).exists()
