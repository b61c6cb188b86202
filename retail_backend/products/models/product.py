# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Sum
from django.utils import timezone

from .category import Category
from store.models import Store


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL (IMPORTANT):
    - Product itself does NOT store stock
    - Stock lives in StockBatch
    - Total stock = sum of NON-EXPIRED, ACTIVE batches

    VAT:
    - vat_rate is an optional product-specific percentage.
    - NULL or 0.00 means "not set": the cart falls back to the store/category
      configuration and then the store default.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="products",
    )

    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
    )

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    # Current/default selling price (snapshotted into the cart on add)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    vat_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Product-specific VAT percentage (optional).",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["sku"]),
            models.Index(fields=["name"]),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.unit_price is None or Decimal(self.unit_price) <= 0:
            raise ValidationError("Unit price must be greater than zero")

        if self.vat_rate is not None and Decimal(self.vat_rate) < Decimal("0.00"):
            raise ValidationError({"vat_rate": "vat_rate cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def category_name(self) -> str | None:
        return getattr(self.category, "name", None)

    @property
    def total_stock_db(self) -> int:
        """
        Total AVAILABLE stock.

        RULES:
        - Only active batches
        - Only non-expired batches (expiry_date >= today)
        - Sum of quantity_remaining
        """
        today = timezone.localdate()

        return (
            self.stock_batches.filter(is_active=True, expiry_date__gte=today)
            .aggregate(total=Sum("quantity_remaining"))
            .get("total")
            or 0
        )
