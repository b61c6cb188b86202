from django.contrib import admin

from .models import CartSnapshot, DailyTransactionCounter


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# =====================================================
# CART SNAPSHOT ADMIN (READ-ONLY)
# =====================================================


@admin.register(CartSnapshot)
class CartSnapshotAdmin(ReadOnlyAdmin):
    list_display = ("key", "updated_at")
    readonly_fields = ("key", "payload", "updated_at")
    search_fields = ("key",)


# =====================================================
# TRANSACTION COUNTER ADMIN (READ-ONLY)
# =====================================================


@admin.register(DailyTransactionCounter)
class DailyTransactionCounterAdmin(ReadOnlyAdmin):
    list_display = ("business_date", "last_sequence", "updated_at")
    readonly_fields = ("business_date", "last_sequence", "updated_at")
    list_filter = ("business_date",)
