"""Audit log for admin and super-admin mutations."""
import uuid
from django.db import models


class AuditEntry(models.Model):
    """Immutable audit trail entry."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    timestamp = models.DateTimeField(auto_now_add=True, db_index=True)
    action = models.CharField(max_length=64, db_index=True)
    performed_by = models.EmailField(blank=True, default="")
    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    meta = models.JSONField(null=True, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default="")

    class Meta:
        app_label = "auditlog"
        db_table = "audit_log"
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["action", "timestamp"], name="idx_audit_action_ts"),
        ]

    def __str__(self):
        return f"{self.timestamp} [{self.action}] {self.performed_by}"
