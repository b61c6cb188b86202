# store/models/store.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q


class Store(models.Model):
    """
    Represents a physical store / branch.

    Guarantees:
    - Stores are stable master-data
    - code is optional, but if provided it must be unique
    - default_vat_rate is a percentage (e.g. 5.00 for 5%), never negative
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)

    # Optional, but if provided must be unique
    code = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="Unique store/branch code (optional). If set, must be unique.",
        db_index=True,
    )

    address = models.TextField(blank=True)
    phone = models.CharField(max_length=50, blank=True)

    vat_enabled = models.BooleanField(default=True)

    default_vat_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Fallback VAT percentage when neither product nor category rate applies.",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(code__isnull=False) & ~Q(code=""),
                name="uniq_store_code_when_present",
            ),
        ]

    def clean(self):
        if self.default_vat_rate is not None and self.default_vat_rate < Decimal("0.00"):
            raise ValidationError({"default_vat_rate": "default_vat_rate cannot be negative"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    @property
    def effective_default_vat_rate(self) -> Decimal:
        # A store with VAT switched off contributes no fallback rate.
        if not self.vat_enabled:
            return Decimal("0.00")
        return self.default_vat_rate or Decimal("0.00")

    def __str__(self):
        c = (self.code or "").strip()
        if c:
            return f"{self.name} ({c})"
        return self.name
