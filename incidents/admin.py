from django.contrib import admin
from .models import Incident


@admin.register(Incident)
class IncidentAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "type", "student_name", "level", "category", "teacher_email", "organization")
    list_filter = ("type", "organization", "level")
    search_fields = ("student_name", "student_id", "teacher_email", "uuid")
    date_hierarchy = "timestamp"

    def has_change_permission(self, request, obj=None):
        return False
