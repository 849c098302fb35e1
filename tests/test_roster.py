import pytest

from roster.models import Classroom, Student


@pytest.mark.django_db
class TestRoster:

    def test_teacher_sees_own_classes(self, signed_in, teacher, springfield, classroom, student):
        own = Classroom.objects.create(organization=springfield, name="Year 2 Krabappel", code="2K",
                                       homeroom_teacher=teacher)
        Student.objects.create(organization=springfield, student_id="S-2", first_name="Milhouse",
                               last_name="Van Houten", classroom=own)
        data = signed_in(teacher).get("/api/roster/").json()["data"]
        assert [c["code"] for c in data] == ["2K"]
        assert [s["firstName"] for s in data[0]["students"]] == ["Milhouse"]

    def test_specialist_classes_included(self, signed_in, teacher, classroom):
        classroom.specialist_teachers.add(teacher)
        data = signed_in(teacher).get("/api/roster/").json()["data"]
        assert [c["code"] for c in data] == ["4H"]

    def test_admin_sees_every_class(self, signed_in, admin, classroom, shelbyville):
        Classroom.objects.create(organization=shelbyville, name="Other school", code="X")
        data = signed_in(admin).get("/api/roster/").json()["data"]
        assert [c["code"] for c in data] == ["4H"]

    def test_requires_sign_in(self, client):
        assert client.get("/api/roster/").status_code == 401
