"""
PATH: pos/models/cart_snapshot.py

CART SNAPSHOT MODEL

Purpose:
- Durable key/value storage for the serialized in-progress cart.
- Backs ModelSnapshotStore (the cart's persistence collaborator).

Rules:
- One row per key (the cart uses a single fixed key).
- payload is an opaque JSON blob; the cart validates it on restore.
"""

from django.db import models


class CartSnapshot(models.Model):
    key = models.CharField(max_length=100, unique=True)
    payload = models.TextField(blank=True, default="")

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return f"CartSnapshot {self.key} @ {self.updated_at}"
