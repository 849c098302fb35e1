from django.contrib import admin
from .models import MobileAuthTicket, Teacher


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ("email", "display_name", "role", "organization", "is_active", "last_login")
    list_filter = ("role", "is_active", "organization")
    search_fields = ("email", "display_name")
    exclude = ("password",)
    readonly_fields = ("last_login", "date_joined")


@admin.register(MobileAuthTicket)
class MobileAuthTicketAdmin(admin.ModelAdmin):
    list_display = ("state", "redirect_path", "expires_at", "consumed_at")
    readonly_fields = ("state", "session_key", "transfer_token", "created_at")
