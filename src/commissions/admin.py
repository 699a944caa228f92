"""Django admin for the commissions module."""
from django.contrib import admin

from commissions.models import CommissionSettings, UserCommission
from core.formatting import format_currency


@admin.register(CommissionSettings)
class CommissionSettingsAdmin(admin.ModelAdmin):
    list_display = (
        "whitelabel",
        "checkpoint_1_percent", "checkpoint_2_percent", "checkpoint_3_percent",
        "sdr_meetings_target", "closer_sales_target",
    )
    search_fields = ("whitelabel__name", "whitelabel__code")
    readonly_fields = ("created_at", "updated_at")
    fieldsets = (
        ("Whitelabel", {"fields": ("whitelabel",)}),
        ("Checkpoints", {
            "fields": (
                ("checkpoint_1_percent", "checkpoint_1_commission_percent"),
                ("checkpoint_2_percent", "checkpoint_2_commission_percent"),
                ("checkpoint_3_percent", "checkpoint_3_commission_percent"),
            ),
        }),
        ("SDR", {
            "fields": ("sdr_meeting_commission", "sdr_bonus_closed_meeting", "sdr_meetings_target"),
        }),
        ("Closer", {
            "fields": (
                "closer_fixed_commission", "closer_per_sale_commission",
                "closer_commission_percent", "closer_sales_target",
            ),
        }),
        ("Dates", {"fields": ("created_at", "updated_at")}),
    )


@admin.register(UserCommission)
class UserCommissionAdmin(admin.ModelAdmin):
    list_display = (
        "user", "whitelabel", "period", "user_role",
        "checkpoint_tier", "final_commission_display", "is_final",
    )
    list_filter = ("is_final", "user_role", "whitelabel", "period_year", "period_month")
    search_fields = ("user__email", "user__first_name", "user__last_name")
    readonly_fields = ("created_at", "updated_at")
    ordering = ("-period_year", "-period_month")

    def final_commission_display(self, obj):
        return format_currency(obj.final_commission, obj.whitelabel.currency, obj.whitelabel.locale)
    final_commission_display.short_description = "Commission"
