import os
from pathlib import Path

import dj_database_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

IS_PRODUCTION = os.getenv("DATABASE_URL") is not None
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "fallback-secret-key")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

ALLOWED_HOSTS = ["localhost", "127.0.0.1"]

INSTALLED_APPS = [
    "linedrill",
    "django.contrib.contenttypes",
]

if IS_PRODUCTION:
    # Parse the DATABASE_URL environment variable (contains password, etc)
    DATABASES = {"default": dj_database_url.config(default=os.getenv("DATABASE_URL"))}
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "data" / "linedrill.sqlite3",
        }
    }

LANGUAGE_CODE = "en-us"
TIME_ZONE = "America/Chicago"
USE_I18N = True
USE_TZ = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "linedrill": {
            "handlers": ["console"],
            "level": os.getenv("LINEDRILL_LOG_LEVEL", "INFO").upper(),
        },
        # every add_job/remove_job is logged at INFO otherwise
        "apscheduler": {"handlers": ["console"], "level": "WARNING"},
    },
}

# Quiz session timing, in seconds
LINEDRILL_AUTO_MOVE_DELAY = 0.22  # before each auto-played ply
LINEDRILL_LINE_TRANSITION_DELAY = 1.5  # between finishing a line and the next
LINEDRILL_HINT_DURATION = 0.5  # how long a hint preview stays on the board
