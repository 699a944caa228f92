"""Test settings - uses SQLite for fast local testing."""
import os

# base.py refuses to start without a strong key outside debug
os.environ.setdefault("SECRET_KEY", "test-secret-key-" + "k8Qz3vW1xR7pL2mN9bT4yH6jD0fG5sA" * 2)
os.environ.setdefault("DEBUG", "True")

from .base import *  # noqa: F401,F403,E402

DEBUG = True

# Use SQLite for tests (no PostgreSQL dependency)
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}
DATABASES["default"]["ATOMIC_REQUESTS"] = False

# Faster password hashing in tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Disable Redis cache in tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Disable Celery in tests
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

# Disable API throttling in tests for deterministic runs
REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []  # noqa: F405
REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}  # noqa: F405

# Fixed locale/currency so formatting assertions are stable
DEFAULT_CURRENCY = "BRL"
DEFAULT_LOCALE = "pt-BR"

# Disable logging noise during tests
LOGGING["root"]["level"] = "WARNING"  # noqa: F405
for _name in ("crm", "commissions"):
    LOGGING["loggers"][_name]["handlers"] = ["console"]  # noqa: F405
    LOGGING["loggers"][_name]["level"] = "WARNING"  # noqa: F405
