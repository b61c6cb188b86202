# pos/services/persistence.py

"""
CART PERSISTENCE (FAIL-SOFT)

Purpose:
- Snapshot the whole cart under ONE fixed key after every mutation.
- Restore it once, when a CartService starts.

Rules:
- Writes never raise: failures are logged and the cart carries on.
- Any read/parse/validation failure on restore yields an empty, valid cart.
- Line totals are not persisted; they are re-derived on read.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal

from pos.services.cart_state import (
    AdHoc,
    ByProduct,
    CartLine,
    CartState,
    DiscountType,
    TransactionDiscount,
)
from pos.services.exceptions import PersistenceError
from pos.services.ports import SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "pos-store"


# ============================================================
# SNAPSHOT <-> STATE
# ============================================================

def line_from_snapshot(data: dict) -> CartLine:
    """
    Build a CartLine from validated snapshot/held-sale line data.
    """
    product_id = data.get("product_id")
    key = ByProduct(product_id) if product_id else AdHoc(data["sku"])

    discount_type = data.get("discount_type")
    return CartLine(
        key=key,
        name=data.get("name") or "Unknown Product",
        sku=data.get("sku") or "",
        unit_price=Decimal(data["unit_price"]),
        quantity=int(data["quantity"]),
        vat_rate=Decimal(data.get("vat_rate") or 0),
        discount_amount=data.get("discount_amount"),
        discount_type=DiscountType(discount_type) if discount_type else None,
        store_id=data.get("store_id"),
        stock_snapshot=data.get("stock_snapshot"),
        category=data.get("category") or None,
        product_vat_rate=data.get("product_vat_rate"),
    )


def state_from_snapshot(data: dict) -> CartState:
    discount = data.get("transaction_discount") or {}
    discount_type = discount.get("type")

    return CartState(
        lines=[line_from_snapshot(line) for line in data.get("lines") or []],
        current_customer_id=data.get("current_customer_id"),
        current_store_id=data.get("current_store_id"),
        transaction_number=data.get("transaction_number") or None,
        transaction_discount=TransactionDiscount(
            amount=Decimal(discount.get("amount") or 0),
            type=DiscountType(discount_type) if discount_type else None,
            original_value=Decimal(discount.get("original_value") or 0),
        ),
        resumed_transaction_id=data.get("resumed_transaction_id"),
    )


def dumps(state: CartState) -> str:
    from pos.serializers.snapshot import CartSnapshotSerializer

    return json.dumps(CartSnapshotSerializer(state).data)


def loads(blob) -> CartState:
    from pos.serializers.snapshot import CartSnapshotSerializer

    try:
        payload = json.loads(blob) if isinstance(blob, (str, bytes)) else blob
    except ValueError as exc:
        raise PersistenceError(f"Cart snapshot is not valid JSON: {exc}") from exc

    serializer = CartSnapshotSerializer(data=payload)
    if not serializer.is_valid():
        raise PersistenceError(f"Cart snapshot failed validation: {serializer.errors}")

    return state_from_snapshot(serializer.validated_data)


# ============================================================
# ADAPTER
# ============================================================

class CartPersistence:
    def __init__(self, store: SnapshotStore, key: str = DEFAULT_SNAPSHOT_KEY):
        self.store = store
        self.key = key

    def save(self, state: CartState) -> bool:
        try:
            self.store.set(self.key, dumps(state))
        except Exception:
            logger.exception("Cart snapshot write failed", extra={"snapshot_key": self.key})
            return False
        return True

    def restore(self) -> CartState:
        try:
            blob = self.store.get(self.key)
            if not blob:
                return CartState()
            return loads(blob)
        except Exception as exc:
            logger.warning(
                "Cart snapshot unreadable, starting with an empty cart: %s",
                exc,
                extra={"snapshot_key": self.key},
            )
            return CartState()


class ModelSnapshotStore:
    """
    SnapshotStore backed by the CartSnapshot table.
    """

    def get(self, key: str) -> str | None:
        from pos.models import CartSnapshot

        return (
            CartSnapshot.objects.filter(key=key)
            .values_list("payload", flat=True)
            .first()
        )

    def set(self, key: str, blob: str) -> None:
        from pos.models import CartSnapshot

        CartSnapshot.objects.update_or_create(key=key, defaults={"payload": blob})


class InMemorySnapshotStore:
    """
    Process-local SnapshotStore (no durability).
    """

    def __init__(self, initial: dict | None = None):
        self.blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.blobs.get(key)

    def set(self, key: str, blob: str) -> None:
        self.blobs[key] = blob
