from django.urls import path
from . import views

app_name = "mobile_auth"

urlpatterns = [
    path("start/", views.mobile_start_view, name="start"),
    path("finish/", views.mobile_finish_view, name="finish"),
    path("session/", views.mobile_session_view, name="session"),
]
