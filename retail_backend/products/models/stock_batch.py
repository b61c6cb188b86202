# products/models/stock_batch.py

"""
STOCK BATCH (DELIVERY-BASED INVENTORY)

Represents ONE physical delivery of stock.

- store-scoped inventory (NULL store = shared stock, used as fallback)
- quantity_received is immutable after creation
- is_active is ALWAYS derived (never user-controlled)
"""

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from .product import Product
from store.models import Store


class StockBatch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="stock_batches",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="stock_batches",
    )

    batch_number = models.CharField(
        max_length=128,
        help_text="Supplier / delivery batch reference",
    )

    expiry_date = models.DateField()

    quantity_received = models.PositiveIntegerField(
        help_text="Quantity delivered (immutable)"
    )

    quantity_remaining = models.PositiveIntegerField(
        default=0,
        help_text="Remaining quantity",
    )

    # Derived field, NEVER edited directly
    is_active = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["expiry_date", "created_at"]
        indexes = [
            models.Index(fields=["store", "expiry_date"]),
            models.Index(fields=["product", "is_active", "expiry_date"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["store", "product", "batch_number"],
                name="unique_batch_per_store_product",
            ),
            models.CheckConstraint(
                condition=Q(quantity_received__gt=0),
                name="chk_stockbatch_qty_received_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(quantity_remaining__lte=F("quantity_received")),
                name="chk_stockbatch_remaining_lte_received",
            ),
        ]

    def clean(self):
        if self.quantity_received is None or self.quantity_received <= 0:
            raise ValidationError(
                {"quantity_received": "quantity_received must be greater than zero"}
            )

        if self.quantity_remaining > self.quantity_received:
            raise ValidationError(
                {"quantity_remaining": "quantity_remaining cannot exceed quantity_received"}
            )

        if not self.expiry_date:
            raise ValidationError({"expiry_date": "expiry_date is required"})

        # Derive store from product if not explicitly set
        if not self.store_id:
            product_store_id = getattr(self.product, "store_id", None)
            if product_store_id:
                self.store_id = product_store_id

        if self.store_id and getattr(self.product, "store_id", None):
            if self.store_id != self.product.store_id:
                raise ValidationError({"store": "StockBatch.store must match Product.store"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            original = StockBatch.objects.only("quantity_received").get(pk=self.pk)
            if self.quantity_received != original.quantity_received:
                raise ValidationError({"quantity_received": "quantity_received is immutable"})

        self.is_active = int(self.quantity_remaining or 0) > 0

        self.full_clean()
        super().save(*args, **kwargs)

    def __str__(self):
        product_name = getattr(self.product, "name", "Product")
        store_name = getattr(getattr(self, "store", None), "name", "NO-STORE")
        return f"{store_name} | {product_name} | Batch {self.batch_number}"
