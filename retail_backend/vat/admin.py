from django.contrib import admin

from .models import VATConfiguration


@admin.register(VATConfiguration)
class VATConfigurationAdmin(admin.ModelAdmin):
    list_display = (
        "store",
        "category",
        "vat_rate",
        "description",
        "is_active",
        "updated_at",
    )
    list_filter = ("is_active", "store")
    search_fields = ("category", "description", "store__name")
    ordering = ("store__name", "category")
    readonly_fields = ("id", "created_at", "updated_at")
