from django.urls import path
from . import views

app_name = "incidents"

urlpatterns = [
    path("log-incident/", views.log_incident_view, name="log_incident"),
    path("options/", views.options_view, name="options"),
]
