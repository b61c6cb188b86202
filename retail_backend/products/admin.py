# products/admin.py
"""
PATH: products/admin.py

Catalog admin. Products and their stock batches are what the cart reads
(price, VAT rate, category, sellable stock per store).

- StockBatch rows are entered once per delivery and are read-only afterwards.
- Sellable stock shown here uses the same store-then-shared rule as the cart.
"""

from __future__ import annotations

from datetime import timedelta

from django.contrib import admin
from django.utils import timezone

from products.models import Category, Product, StockBatch
from products.services import available_stock_for_store


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name",)
    search_fields = ("name",)


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "store",
        "category",
        "unit_price",
        "vat_rate",
        "sellable_stock",
        "is_active",
    )
    list_filter = ("is_active", "store", "category")
    search_fields = ("sku", "name")
    readonly_fields = ("created_at", "updated_at")

    @admin.display(description="Sellable stock")
    def sellable_stock(self, obj):
        return available_stock_for_store(product=obj, store_id=obj.store_id)


@admin.register(StockBatch)
class StockBatchAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "store",
        "batch_number",
        "expiry_date",
        "quantity_received",
        "quantity_remaining",
        "expiry_status",
    )
    list_filter = ("is_active", "store")
    search_fields = ("batch_number", "product__sku")

    def has_change_permission(self, request, obj=None):
        return obj is None

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description="Expiry")
    def expiry_status(self, obj):
        today = timezone.localdate()
        if obj.expiry_date < today:
            return "EXPIRED"
        if obj.expiry_date <= today + timedelta(days=30):
            return "SOON"
        return "OK"
