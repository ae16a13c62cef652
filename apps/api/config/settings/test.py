# PATH: apps/api/config/settings/test.py
from .base import *

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SUBMISSION_STREAM_KEY = "test:submissions"
SUBMISSION_GROUP_NAME = "test-persisters"
SUBMISSION_DEAD_LETTER_KEY = "test:submissions:dead"
