"""Incident and commendation records."""
from django.db import models


class IncidentQuerySet(models.QuerySet):

    def for_organization(self, organization_id):
        """Tenant-scoped rows. There is no unscoped variant."""
        if not organization_id:
            raise ValueError("organization_id is required for tenant-scoped incident queries")
        return self.filter(organization_id=organization_id)


class IncidentManager(models.Manager.from_queryset(IncidentQuerySet)):

    def insert_if_absent(self, uuid, **fields):
        """
        Create the record for ``uuid`` unless one already exists.

        An existing record is returned untouched, never updated, so replays
        of the same submission are no-ops. Returns ``(incident, created)``.
        """
        return self.get_or_create(uuid=uuid, defaults=fields)


class Incident(models.Model):
    """One behaviour record. Immutable once written."""

    class Type(models.TextChoices):
        INCIDENT = "incident", "Incident"
        COMMENDATION = "commendation", "Commendation"

    uuid = models.UUIDField(unique=True, editable=False)
    timestamp = models.DateTimeField(db_index=True)
    type = models.CharField(max_length=16, choices=Type.choices, default=Type.INCIDENT)
    student_id = models.CharField(max_length=64, blank=True, default="")
    student_name = models.CharField(max_length=120)
    organization = models.ForeignKey(
        "organizations.Organization", on_delete=models.PROTECT, related_name="incidents"
    )
    classroom = models.ForeignKey(
        "roster.Classroom", on_delete=models.SET_NULL, null=True, blank=True, related_name="incidents"
    )
    class_code = models.CharField(max_length=32, blank=True, default="")
    teacher_email = models.EmailField()
    level = models.CharField(max_length=32)
    category = models.CharField(max_length=64)
    location = models.CharField(max_length=32)
    action_taken = models.CharField(max_length=120, blank=True, default="")
    note = models.TextField(blank=True, default="")
    device = models.CharField(max_length=200, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    objects = IncidentManager()

    class Meta:
        app_label = "incidents"
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["organization", "timestamp"], name="idx_incident_org_ts"),
            models.Index(fields=["organization", "student_id"], name="idx_incident_org_student"),
        ]

    def __str__(self):
        return f"{self.type} {self.uuid} ({self.student_name})"
