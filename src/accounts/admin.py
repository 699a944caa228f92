from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration for the custom User model."""

    # ------------------------------------------------------------------
    # List view
    # ------------------------------------------------------------------
    list_display = (
        "email",
        "first_name",
        "last_name",
        "role",
        "whitelabel",
        "is_active",
        "date_joined",
    )
    list_filter = ("role", "whitelabel", "is_active", "is_staff")
    search_fields = ("email", "first_name", "last_name")
    ordering = ("last_name", "first_name")
    actions = ("activate_users", "deactivate_users")

    # ------------------------------------------------------------------
    # Detail / edit view
    # ------------------------------------------------------------------
    fieldsets = (
        (None, {"fields": ("email", "password")}),
        (
            _("Informations personnelles"),
            {"fields": ("first_name", "last_name", "phone", "avatar_url")},
        ),
        (
            _("Role et whitelabel"),
            {
                "fields": (
                    "role",
                    "whitelabel",
                    "is_active",
                    "is_staff",
                    "is_superuser",
                ),
            },
        ),
        (
            _("Dates importantes"),
            {"fields": ("last_login", "date_joined")},
        ),
    )
    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": (
                    "email",
                    "first_name",
                    "last_name",
                    "role",
                    "whitelabel",
                    "password1",
                    "password2",
                ),
            },
        ),
    )
    readonly_fields = ("date_joined", "last_login")

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("whitelabel")

    @admin.action(description="Activer les utilisateurs selectionnes")
    def activate_users(self, request, queryset):
        queryset.update(is_active=True)

    @admin.action(description="Desactiver les utilisateurs selectionnes")
    def deactivate_users(self, request, queryset):
        queryset.update(is_active=False)
