# products/services/catalog.py

"""
======================================================
PATH: products/services/catalog.py
======================================================
CATALOG READ SERVICE

Purpose:
- Supply the POS cart with product snapshots (price, VAT rate, category, stock).
- Supply batched live stock levels for cart reconciliation.

Stock rules (same as checkout):
- Only active, non-expired batches with quantity_remaining > 0 count.
- Primary: batches of the requested store.
- Transitional fallback: NULL-store (shared) batches when the product has no
  store-specific stock at all.
- No store requested: every qualifying batch counts.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from django.core.exceptions import ValidationError
from django.db.models import Sum
from django.utils import timezone

from pos.services.ports import CatalogItem
from products.models import Product, StockBatch


def _available_batches(*, today):
    return StockBatch.objects.filter(
        is_active=True,
        expiry_date__gte=today,
        quantity_remaining__gt=0,
    )


def _sum_by_product(qs) -> dict[str, int]:
    rows = qs.values("product_id").annotate(total=Sum("quantity_remaining"))
    return {str(r["product_id"]): int(r["total"] or 0) for r in rows}


def stock_levels_for_store(*, product_ids: Iterable, store_id=None, today=None) -> dict[str, int]:
    """
    Available stock per product id (string keys). Unknown ids map to 0.
    """
    ids = [str(pid) for pid in product_ids if pid]
    if not ids:
        return {}

    today = today or timezone.localdate()
    base = _available_batches(today=today).filter(product_id__in=ids)

    if store_id:
        store_totals = _sum_by_product(base.filter(store_id=store_id))
        shared_totals = _sum_by_product(base.filter(store__isnull=True))
    else:
        store_totals = _sum_by_product(base)
        shared_totals = {}

    levels = {}
    for pid in ids:
        if pid in store_totals:
            levels[pid] = store_totals[pid]
        else:
            levels[pid] = shared_totals.get(pid, 0)
    return levels


def available_stock_for_store(*, product, store_id=None, today=None) -> int:
    product_id = str(getattr(product, "id", product))
    levels = stock_levels_for_store(product_ids=[product_id], store_id=store_id, today=today)
    return levels.get(product_id, 0)


def catalog_item_for(product: Product, *, stock: int | None) -> CatalogItem:
    return CatalogItem(
        id=str(product.id),
        name=product.name,
        sku=product.sku,
        price=product.unit_price,
        stock=stock,
        vat_rate=product.vat_rate,
        category=product.category_name,
    )


class DjangoCatalog:
    """
    ORM-backed Catalog collaborator.

    Store scope comes from an explicit store_id, or else from the store
    directory's current store (so a store switch is picked up without rewiring).
    """

    def __init__(self, store_id=None, *, stores=None):
        self._store_id = store_id
        self._stores = stores

    @property
    def store_id(self):
        if self._store_id:
            return self._store_id
        current = getattr(self._stores, "current_store", None)
        return getattr(current, "id", None)

    def get_product(self, product_id) -> CatalogItem | None:
        try:
            product = (
                Product.objects.select_related("category")
                .filter(id=product_id, is_active=True)
                .first()
            )
        except (ValueError, ValidationError):
            return None

        if product is None:
            return None

        stock = available_stock_for_store(product=product, store_id=self.store_id)
        return catalog_item_for(product, stock=stock)

    def get_stock_levels(self, product_ids) -> dict[str, int]:
        try:
            return stock_levels_for_store(product_ids=product_ids, store_id=self.store_id)
        except ValidationError:
            return {}
