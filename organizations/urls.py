from django.urls import path
from . import views

app_name = "organizations"

urlpatterns = [
    path("schools/", views.schools_view, name="school_list"),
    path("schools/<uuid:organization_id>/", views.school_detail_view, name="school_detail"),
]
