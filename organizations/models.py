"""Tenant models: one Organization per school, keyed by its e-mail domain."""
import uuid
from django.db import models


class Organization(models.Model):
    """A school. Every tenant-scoped row carries its id."""

    class LmsProvider(models.TextChoices):
        TRACKTALLY = "TRACKTALLY", "TrackTally"
        SIMON = "SIMON", "SIMON"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, help_text="Display name for the school")
    domain = models.CharField(
        max_length=253, unique=True, help_text="Google Workspace domain, stored lower-case"
    )
    active = models.BooleanField(default=True)
    lms_provider = models.CharField(
        max_length=20, choices=LmsProvider.choices, null=True, blank=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "organizations"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.domain = normalize_domain(self.domain)
        super().save(*args, **kwargs)


class Setting(models.Model):
    """Key/value configuration. Rows bound to an organization go with it."""
    key = models.CharField(max_length=191, primary_key=True)
    value = models.JSONField()
    organization = models.ForeignKey(
        Organization, on_delete=models.CASCADE, null=True, blank=True, related_name="settings"
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        app_label = "organizations"

    def __str__(self):
        return self.key


def normalize_domain(domain):
    return (domain or "").strip().lower()
