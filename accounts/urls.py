from django.urls import path
from . import views

app_name = "accounts"

urlpatterns = [
    path("admin-login/", views.admin_login, name="login"),
    path("admin-logout/", views.admin_logout, name="logout"),
]
