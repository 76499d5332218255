from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.db.models import Count

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration for custom User model."""

    list_display = (
        "username",
        "display_name",
        "email",
        "consent_form_count",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "is_staff", "created_at")
    search_fields = ("username", "display_name", "email")
    ordering = ("username",)
    list_per_page = 50

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Additional Info", {"fields": ("display_name", "created_at", "updated_at")}),
    )

    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Additional Info", {"fields": ("display_name",)}),
    )

    readonly_fields = ("created_at", "updated_at", "last_login", "date_joined")

    def get_queryset(self, request):
        return (
            super()
            .get_queryset(request)
            .annotate(_consent_form_count=Count("consent_forms", distinct=True))
        )

    @admin.display(description="Consent forms", ordering="_consent_form_count")
    def consent_form_count(self, obj):
        return obj._consent_form_count
