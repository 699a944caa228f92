from django.contrib import admin

from whitelabels.models import Whitelabel


@admin.register(Whitelabel)
class WhitelabelAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "business_model", "currency", "is_active", "created_at")
    list_filter = ("business_model", "is_active")
    search_fields = ("name", "code")
    prepopulated_fields = {"code": ("name",)}
    readonly_fields = ("created_at", "updated_at")
