# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS
- In-memory SQLite (tables for unmigrated apps are created by syncdb)
- Fast password hashing
- Quiet logs
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING

DEBUG = False
SECRET_KEY = "test-insecure-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

POS = {
    "CART_SNAPSHOT_KEY": "pos-store-test",
    "TRANSACTION_NUMBER_MAX_RETRIES": 3,
}

LOGGING["loggers"]["pos"]["level"] = "CRITICAL"
