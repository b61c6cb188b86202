# vat/models/vat_configuration.py

"""
VAT CONFIGURATION MODEL

Purpose:
- Store + category specific VAT percentage (e.g. "Beverages" at 5.00 in store A).

Rules:
- At most one ACTIVE configuration per (store, category), category compared
  case-insensitively.
- vat_rate is a percentage and can never be negative.
- category NULL/blank describes a store-wide rule; the cart cascade only
  consults category rules (store-wide fallback is Store.default_vat_rate).
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from store.models import Store


class VATConfiguration(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="vat_configurations",
    )

    category = models.CharField(max_length=120, blank=True, null=True)

    vat_rate = models.DecimalField(max_digits=5, decimal_places=2)

    description = models.CharField(max_length=255, blank=True)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name = "VAT configuration"
        indexes = [
            models.Index(fields=["store", "is_active"]),
        ]

    def clean(self):
        if self.vat_rate is None:
            raise ValidationError({"vat_rate": "vat_rate is required"})

        if Decimal(self.vat_rate) < Decimal("0.00"):
            raise ValidationError({"vat_rate": "vat_rate cannot be negative"})

        self.category = (self.category or "").strip() or None

        if self.is_active and self.category and self.store_id:
            clash = (
                VATConfiguration.objects.filter(
                    store_id=self.store_id,
                    category__iexact=self.category,
                    is_active=True,
                )
                .exclude(pk=self.pk)
                .exists()
            )
            if clash:
                raise ValidationError(
                    {"category": "An active VAT configuration already exists for this store and category."}
                )

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.store} | {self.category or 'ALL'} | {self.vat_rate}%"
