from django.contrib import admin

from .models import Store


@admin.register(Store)
class StoreAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "code",
        "vat_enabled",
        "default_vat_rate",
        "is_active",
        "created_at",
    )
    list_filter = ("is_active", "vat_enabled")
    search_fields = ("name", "code")
    ordering = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")
