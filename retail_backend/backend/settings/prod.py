# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS (register backends)

Fail-closed rules:
- DEBUG is forced off; SECRET_KEY and ALLOWED_HOSTS must be set
- Postgres only: transaction numbers rely on select_for_update row locks,
  which sqlite does not take
- Each register keeps its own cart snapshot key (POS_CART_SNAPSHOT_KEY)
- The only browser surface is the admin: secure cookies, HSTS, https-only
  CSRF origins
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, MIDDLEWARE, POS, env


def _required(name: str) -> str:
    value = (env(name, default="") or "").strip()
    if not value:
        raise ImproperlyConfigured(f"{name} must be set in production.")
    return value


DEBUG = False

SECRET_KEY = _required("SECRET_KEY")
if SECRET_KEY == "dev-insecure-change-me":
    raise ImproperlyConfigured("SECRET_KEY is still the development default.")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
if not ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Database
# ----------------------------
if not _required("DATABASE_URL").startswith(("postgres://", "postgresql://")):
    raise ImproperlyConfigured("DATABASE_URL must point at Postgres in production.")

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ----------------------------
# Cart
# ----------------------------
POS["CART_SNAPSHOT_KEY"] = _required("POS_CART_SNAPSHOT_KEY")
if POS["TRANSACTION_NUMBER_MAX_RETRIES"] < 1:
    raise ImproperlyConfigured("POS_TRANSACTION_NUMBER_MAX_RETRIES must be at least 1.")

# ----------------------------
# Static files (admin only)
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))

MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# Transport + cookies
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)

SESSION_COOKIE_SECURE = CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = CSRF_COOKIE_HTTPONLY = True

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])
if any(not origin.startswith("https://") for origin in CSRF_TRUSTED_ORIGINS):
    raise ImproperlyConfigured("CSRF_TRUSTED_ORIGINS must be https:// in production.")
