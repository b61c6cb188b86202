# backend/urls.py
"""
PROJECT URLS

The cart & pricing engine has no HTTP surface of its own. Exposed here:
- Django admin (master data: stores, products, stock, VAT configurations)
- /api/health/ (AllowAny): app + DB connectivity check

Admin path is configurable via env var (ADMIN_PATH).
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import connections
from django.db.utils import OperationalError
from django.urls import path
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response


# ------------------ HEALTH CHECK (PUBLIC) ------------------
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Minimal operational endpoint:
    - Confirms app is responding
    - Confirms DB connection + simple query works
    """
    try:
        conn = connections["default"]
        with conn.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
        return Response({"status": "ok", "db": "ok"})
    except OperationalError as e:
        return Response(
            {"status": "degraded", "db": "down", "error": str(e)}, status=503
        )


# ------------------ ADMIN PATH ------------------
ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"


urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("api/health/", health_check, name="health-check"),
]
