from django.urls import path
from . import admin_views

app_name = "admin_panel"

urlpatterns = [
    path("organization/", admin_views.organization_view, name="organization"),

    # Account management
    path("teachers/", admin_views.teachers_view, name="teachers"),
    path("teachers/<uuid:teacher_id>/", admin_views.teacher_detail_view, name="teacher_detail"),

    # Incident records
    path("incidents/", admin_views.incidents_view, name="incidents"),
    path("incidents/export/", admin_views.export_csv_view, name="incidents_export"),
    path("incidents/retention/", admin_views.retention_view, name="incidents_retention"),
    path("incidents/<uuid:incident_uuid>/", admin_views.incident_detail_view, name="incident_detail"),

    path("options/", admin_views.options_view, name="options"),
    path("recover/", admin_views.recover_view, name="recover"),
]
