from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("django-rq/", include("django_rq.urls")),
    # admin login/logout
    path("", include("accounts.urls")),
    # triage dashboard and case pages
    path("admin/", include("triage.urls")),
    # public submit/track pages
    path("", include("complaints.urls")),
]
