from django.contrib import admin
from .models import AuditEntry


@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "action", "performed_by", "organization", "ip_address")
    list_filter = ("action",)
    search_fields = ("performed_by",)
    readonly_fields = (
        "id", "timestamp", "action", "performed_by", "organization", "meta", "ip_address", "user_agent",
    )
