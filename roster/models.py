"""Roster models – tenant-scoped classrooms and students."""
import uuid
from django.conf import settings
from django.db import models


class Classroom(models.Model):
    """A class within a school, with one homeroom teacher and any specialists."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        "organizations.Organization", on_delete=models.CASCADE, related_name="classrooms"
    )
    name = models.CharField(max_length=120)
    code = models.CharField(max_length=32, blank=True, default="")
    homeroom_teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="homeroom_classrooms",
    )
    specialist_teachers = models.ManyToManyField(
        settings.AUTH_USER_MODEL, blank=True, related_name="specialist_classrooms"
    )
    archived = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "roster"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["organization", "code"], name="idx_classroom_org_code"),
        ]

    def __str__(self):
        return self.name


class Student(models.Model):
    """A student, identified within the school by the school's own student id."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    organization = models.ForeignKey(
        "organizations.Organization", on_delete=models.CASCADE, related_name="students"
    )
    student_id = models.CharField(max_length=64)
    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120, blank=True, default="")
    classroom = models.ForeignKey(
        Classroom, on_delete=models.SET_NULL, null=True, blank=True, related_name="students"
    )
    guardians = models.JSONField(default=list, blank=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "roster"
        ordering = ["last_name", "first_name"]
        unique_together = [("organization", "student_id")]

    def __str__(self):
        return f"{self.first_name} {self.last_name}".strip()
