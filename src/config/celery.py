"""Celery configuration."""
import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "config.settings.dev"),
)

app = Celery("crm")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

# Beat schedule
app.conf.beat_schedule = {
    "commissions-close-month": {
        "task": "commissions.tasks.close_month_commissions",
        "schedule": crontab(minute=30, hour=0),  # Daily, acts on the 1st only
    },
}
