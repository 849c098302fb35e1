"""URL configuration."""
from django.contrib import admin
from django.urls import include, path

from .views import health_view

urlpatterns = [
    path("auth/", include("accounts.urls")),
    path("api/mobile/auth/", include("accounts.mobile_urls")),
    path("api/", include("incidents.urls")),
    path("api/roster/", include("roster.urls")),
    path("api/admin/", include("dashboard.admin_urls")),
    path("api/super-admin/", include("organizations.urls")),
    path("api/health/", health_view, name="health"),
    path("django-admin/", admin.site.urls),
]
