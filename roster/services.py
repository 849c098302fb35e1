"""Roster lookups. Every query takes the effective organization id."""
from django.db.models import Prefetch, Q

from .models import Classroom, Student


def find_student(organization_id, student_id):
    """The student with this school-issued id, with classroom and homeroom teacher."""
    if not organization_id or not student_id:
        return None
    return (
        Student.objects.select_related("classroom", "classroom__homeroom_teacher")
        .filter(organization_id=organization_id, student_id=student_id)
        .first()
    )


def find_classroom_by_code(organization_id, code):
    if not organization_id or not code:
        return None
    return Classroom.objects.filter(organization_id=organization_id, code=code, archived=False).first()


def visible_classrooms(organization_id, teacher_email, see_all=False):
    """Classes a teacher homerooms or teaches as a specialist; admins see every class."""
    qs = Classroom.objects.filter(organization_id=organization_id, archived=False)
    if not see_all:
        qs = qs.filter(
            Q(homeroom_teacher__email=teacher_email) | Q(specialist_teachers__email=teacher_email)
        ).distinct()
    return qs.select_related("homeroom_teacher").prefetch_related(
        Prefetch("students", queryset=Student.objects.filter(active=True).order_by("last_name", "first_name"))
    ).order_by("name")


def serialize_classroom(classroom):
    homeroom = classroom.homeroom_teacher
    return {
        "id": str(classroom.id),
        "name": classroom.name,
        "code": classroom.code,
        "homeroomTeacher": {
            "id": str(homeroom.id),
            "email": homeroom.email,
            "displayName": homeroom.display_name,
        } if homeroom else None,
        "students": [
            {
                "id": str(student.id),
                "studentId": student.student_id,
                "firstName": student.first_name,
                "lastName": student.last_name,
                "classId": str(classroom.id),
            }
            for student in classroom.students.all()
        ],
    }
