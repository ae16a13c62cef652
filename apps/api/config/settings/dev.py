from .base import *

DEBUG = True
ALLOWED_HOSTS = ["*"]

# 로컬: DB_NAME 미설정이면 sqlite
if not os.getenv("DB_NAME"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

LOGGING["loggers"]["questflow"]["level"] = "DEBUG"
