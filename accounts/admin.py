from django.contrib import admin
from .models import User

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "email", "is_active", "is_superuser", "last_verified_at")
    list_filter = ("is_active", "is_superuser")
    search_fields = ("email", "external_uid")
    readonly_fields = ("external_uid", "last_verified_at", "last_login", "date_joined")
    exclude = ("password",)
