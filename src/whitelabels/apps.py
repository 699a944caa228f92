from django.apps import AppConfig


class WhitelabelsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "whitelabels"
    verbose_name = "Whitelabels"
