import uuid
from dataclasses import asdict

import pytest
from django.core.cache import cache
from django.test import Client
from django.utils import timezone

from accounts.identity import SESSION_IDENTITY_KEY, SessionIdentity
from accounts.models import Teacher
from incidents.models import Incident
from incidents.retention import enforcer
from organizations.models import Organization
from roster.models import Classroom, Student
from tests.fakes import RecordingMirror


@pytest.fixture(autouse=True)
def _reset_state():
    cache.clear()
    enforcer.reset()
    RecordingMirror.reset()
    yield
    RecordingMirror.reset()


@pytest.fixture
def springfield(db):
    return Organization.objects.create(name="Springfield Primary", domain="springfield.edu.au")


@pytest.fixture
def shelbyville(db):
    return Organization.objects.create(name="Shelbyville Primary", domain="shelbyville.edu.au")


@pytest.fixture
def make_teacher(db):
    def _make(email, organization=None, role=Teacher.Role.TEACHER, **extra):
        return Teacher.objects.create_user(email=email, organization=organization, role=role, **extra)
    return _make


@pytest.fixture
def signed_in(db):
    """Client whose session carries the sign-in snapshot for ``teacher``."""
    def _sign_in(teacher, **overrides):
        client = Client()
        client.force_login(teacher)
        identity = SessionIdentity.from_teacher(teacher)
        session = client.session
        session[SESSION_IDENTITY_KEY] = {**asdict(identity), **overrides}
        session.save()
        return client
    return _sign_in


@pytest.fixture
def teacher(make_teacher, springfield):
    return make_teacher("edna@springfield.edu.au", organization=springfield, display_name="Edna K")


@pytest.fixture
def admin(make_teacher, springfield):
    return make_teacher("principal@springfield.edu.au", organization=springfield, role=Teacher.Role.ADMIN)


@pytest.fixture
def superadmin(make_teacher):
    return make_teacher("ops@tracktally.app", role=Teacher.Role.SUPERADMIN)


@pytest.fixture
def homeroom(make_teacher, springfield):
    return make_teacher("hoover@springfield.edu.au", organization=springfield)


@pytest.fixture
def classroom(springfield, homeroom):
    return Classroom.objects.create(
        organization=springfield, name="Year 4 Hoover", code="4H", homeroom_teacher=homeroom,
    )


@pytest.fixture
def student(springfield, classroom):
    return Student.objects.create(
        organization=springfield, student_id="S-1001", first_name="Bart", last_name="Simpson",
        classroom=classroom,
    )


@pytest.fixture
def make_incident(db):
    def _make(organization, **fields):
        defaults = dict(
            uuid=uuid.uuid4(),
            timestamp=timezone.now(),
            student_id="S-1001",
            student_name="Bart Simpson",
            organization=organization,
            teacher_email="edna@springfield.edu.au",
            level="Minor",
            category="Disruption",
            location="Classroom",
        )
        defaults.update(fields)
        return Incident.objects.create(**defaults)
    return _make
