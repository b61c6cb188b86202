# products/models/category.py

import uuid

from django.db import models


class Category(models.Model):
    """
    Product category. The name is what VAT configurations match against
    (case-insensitively).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=120, unique=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name
