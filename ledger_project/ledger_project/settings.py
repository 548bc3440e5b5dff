"""
Django settings for the ledger posting engine.

Everything environment-specific is read from environment variables so the
same module serves local development, the test suite and production.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_flag(name, default="false"):
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = _env_flag("DJANGO_DEBUG")
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost").split(",")

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "ledger_core",
]

# Custom user lives in the ledger app (must be set before the first migrate)
AUTH_USER_MODEL = "ledger_core.User"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ---------- Database ----------
# Posting, approval and void run read-then-write sequences, so on PostgreSQL
# every connection is opened at SERIALIZABLE isolation.
if os.environ.get("LEDGER_DB_ENGINE", "sqlite") == "postgresql":
    from psycopg import IsolationLevel

    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("LEDGER_DB_NAME", "ledger"),
            "USER": os.environ.get("LEDGER_DB_USER", "ledger"),
            "PASSWORD": os.environ.get("LEDGER_DB_PASSWORD", ""),
            "HOST": os.environ.get("LEDGER_DB_HOST", "localhost"),
            "PORT": os.environ.get("LEDGER_DB_PORT", "5432"),
            "OPTIONS": {"isolation_level": IsolationLevel.SERIALIZABLE},
        }
    }
else:
    # SQLite gets one writer at a time: BEGIN IMMEDIATE takes the write lock
    # up front and other writers wait up to "timeout" seconds for it. The
    # test database is a file so threads share it.
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("LEDGER_DB_NAME", str(BASE_DIR / "db.sqlite3")),
            "OPTIONS": {
                "transaction_mode": "IMMEDIATE",
                "timeout": int(os.environ.get("LEDGER_DB_TIMEOUT", "20")),
            },
            "TEST": {
                "NAME": os.environ.get(
                    "LEDGER_TEST_DB_NAME", str(BASE_DIR / "test_ledger.sqlite3")),
            },
        }
    }

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "ledger-reports",
    }
}

USE_TZ = True
TIME_ZONE = "UTC"

# ---------- Celery ----------
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "cache+memory://")
CELERY_TASK_ALWAYS_EAGER = _env_flag("CELERY_TASK_ALWAYS_EAGER", "true")
CELERY_TASK_SERIALIZER = "json"

# ---------- Ledger ----------
# Overrides merged over ledger_core.conf.DEFAULTS
LEDGER = {
    "ENTRY_NUMBER_PREFIX": "JE-",
    "ENTRY_NUMBER_PADDING": 3,
    "REPORT_CACHE_INVALIDATOR": "ledger_core.cache.CeleryReportCacheInvalidator",
}

# ---------- Logging ----------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "ledger_core": {
            "handlers": ["console"],
            "level": os.environ.get("LEDGER_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
