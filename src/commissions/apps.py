"""App config for the commissions module."""
from django.apps import AppConfig


class CommissionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "commissions"
    verbose_name = "Commissions"

    def ready(self):
        import commissions.signals  # noqa: F401
