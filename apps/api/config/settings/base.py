# PATH: apps/api/config/settings/base.py

from pathlib import Path
import os

# ==================================================
# BASE
# ==================================================

BASE_DIR = Path(__file__).resolve().parents[4]

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-secret-key")
DEBUG = True
ALLOWED_HOSTS = ["*"]

# HTTP 라우팅은 core 범위 밖 (bootstrap 계층에서 구성)
ROOT_URLCONF = None

# ==================================================
# INSTALLED APPS
# ==================================================

INSTALLED_APPS = [
    # Django
    "django.contrib.auth",
    "django.contrib.contenttypes",

    # Common
    "apps.api.common",

    # Domain Apps
    "apps.domains.forms.apps.FormsDomainConfig",
    "apps.domains.submissions",

    # REST (요청 검증 serializer)
    "rest_framework",
]

# ==================================================
# DATABASE
# ==================================================

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.getenv("DB_NAME"),
        "USER": os.getenv("DB_USER"),
        "PASSWORD": os.getenv("DB_PASSWORD"),
        "HOST": os.getenv("DB_HOST"),
        "PORT": os.getenv("DB_PORT", "5432"),
    }
}

# ==================================================
# GLOBAL
# ==================================================

LANGUAGE_CODE = "ko-kr"
TIME_ZONE = "Asia/Seoul"

USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ==================================================
# REDIS / SUBMISSION STREAM
# ==================================================

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

SUBMISSION_STREAM_KEY = os.getenv("SUBMISSION_STREAM_KEY", "questflow:submissions")
SUBMISSION_GROUP_NAME = os.getenv("SUBMISSION_GROUP_NAME", "submission-persisters")
SUBMISSION_DEAD_LETTER_KEY = os.getenv("SUBMISSION_DEAD_LETTER_KEY", f"{SUBMISSION_STREAM_KEY}:dead")

# ==================================================
# LOGGING
# ==================================================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "questflow": {
            "handlers": ["console"],
            "level": os.getenv("QUESTFLOW_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
}
