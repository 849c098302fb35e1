from django.contrib import admin
from .models import Organization, Setting


class SettingInline(admin.TabularInline):
    model = Setting
    extra = 0


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "domain", "active", "lms_provider", "created_at")
    list_filter = ("active", "lms_provider")
    search_fields = ("name", "domain")
    inlines = [SettingInline]


@admin.register(Setting)
class SettingAdmin(admin.ModelAdmin):
    list_display = ("key", "organization", "updated_at")
    search_fields = ("key",)
