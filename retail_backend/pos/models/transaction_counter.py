"""
PATH: pos/models/transaction_counter.py

DAILY TRANSACTION COUNTER

Purpose:
- Per-day sequence behind POS transaction numbers (YYYYMMDD + 4 digits).

Rules:
- One row per business date.
- last_sequence only ever increases; rows are locked while incremented.
"""

from django.core.exceptions import ValidationError
from django.db import models


class DailyTransactionCounter(models.Model):
    business_date = models.DateField(unique=True)
    last_sequence = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-business_date"]

    def clean(self):
        if self.last_sequence > 9999:
            raise ValidationError({"last_sequence": "Daily transaction sequence exhausted (max 9999)."})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.business_date:%Y%m%d} -> {self.last_sequence:04d}"
