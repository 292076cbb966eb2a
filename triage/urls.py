from django.urls import path
from . import views

app_name = "triage"

urlpatterns = [
    path("", views.dashboard, name="dashboard"),
    path("export/", views.export_complaints, name="export"),
    path("case/<str:ticket_id>/", views.case_detail, name="case_detail"),
]
