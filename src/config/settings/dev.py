"""Development settings."""
from .base import *  # noqa: F401,F403

DEBUG = True

# CORS
CORS_ALLOW_ALL_ORIGINS = True

# Logging
LOGGING["root"]["level"] = "DEBUG"  # noqa: F405
LOGGING["loggers"]["commissions"]["level"] = "DEBUG"  # noqa: F405
