from django.contrib import admin

from crm.models import Contact, Deal, Meeting


@admin.register(Contact)
class ContactAdmin(admin.ModelAdmin):
    list_display = ("name", "whitelabel", "funnel_stage", "sdr", "closer", "meeting_date")
    list_filter = ("whitelabel", "funnel_stage")
    search_fields = ("name", "email")


@admin.register(Deal)
class DealAdmin(admin.ModelAdmin):
    list_display = ("title", "whitelabel", "status", "value", "duration", "sdr", "closer", "sale_date")
    list_filter = ("whitelabel", "status")
    search_fields = ("title", "contact__name")
    raw_id_fields = ("contact",)


@admin.register(Meeting)
class MeetingAdmin(admin.ModelAdmin):
    list_display = ("title", "whitelabel", "sdr", "status", "converted_to_sale", "scheduled_at")
    list_filter = ("whitelabel", "status", "converted_to_sale")
    search_fields = ("title", "sdr__email")
    raw_id_fields = ("contact", "deal")
