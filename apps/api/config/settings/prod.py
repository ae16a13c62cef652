# PATH: apps/api/config/settings/prod.py
from .base import *
import os

# ==================================================
# PROD MODE
# ==================================================

DEBUG = False

SECRET_KEY = os.environ["DJANGO_SECRET_KEY"]

ALLOWED_HOSTS = [
    h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost").split(",") if h.strip()
]

# ==================================================
# DATABASE (커넥션 재사용)
# ==================================================

DATABASES["default"]["CONN_MAX_AGE"] = int(os.getenv("DB_CONN_MAX_AGE", "60"))
