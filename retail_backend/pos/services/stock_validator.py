# pos/services/stock_validator.py

"""
STOCK VALIDATION & PASSIVE RECONCILIATION

validate_stock():
- current cart quantity + requested delta must not exceed available stock
- ad-hoc lines (no catalog product) are exempt
- unknown stock (None) is not checked

StockReconciler:
- Re-checks tracked lines whenever fresher stock arrives and plans clamps
- Guarded by a signature of (line quantities, stock levels): an unchanged
  signature means the pass is skipped, so duplicate or out-of-order refresh
  completions never re-notify
- Pure: it plans, CartService applies
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Sequence, Union

from pos.services.cart_state import AdHoc, CartLine, CartLineKey


@dataclass(frozen=True)
class StockAccepted:
    pass


@dataclass(frozen=True)
class StockRejected:
    available_stock: int


StockDecision = Union[StockAccepted, StockRejected]


def validate_stock(
    *,
    key: CartLineKey,
    requested_delta: int,
    current_cart_quantity: int,
    available_stock: int | None,
) -> StockDecision:
    if isinstance(key, AdHoc) or available_stock is None:
        return StockAccepted()

    if current_cart_quantity + requested_delta > available_stock:
        return StockRejected(available_stock=available_stock)

    return StockAccepted()


def stock_signature(lines: Sequence[CartLine], stock_levels: Mapping[str, int]) -> str:
    tracked = [line for line in lines if line.is_tracked]
    quantities = "|".join(f"{line.product_id}-{line.quantity}" for line in tracked)

    product_ids = {line.product_id for line in tracked}
    levels = "|".join(
        f"{product_id}-{stock_levels[product_id]}"
        for product_id in sorted(product_ids)
        if product_id in stock_levels
    )
    return f"{quantities}|{levels}"


@dataclass(frozen=True)
class StockAdjustment:
    key: CartLineKey
    product_name: str
    previous_quantity: int
    new_quantity: int
    available_stock: int

    @property
    def quantity_changed(self) -> bool:
        return self.new_quantity != self.previous_quantity

    @property
    def out_of_stock(self) -> bool:
        return self.available_stock <= 0


@dataclass(frozen=True)
class ReconciliationPlan:
    skipped: bool
    adjustments: tuple[StockAdjustment, ...] = ()
    signature: str = ""


class StockReconciler:
    def __init__(self):
        self.last_signature: str | None = None

    def reset(self) -> None:
        self.last_signature = None

    def reconcile(self, lines: Sequence[CartLine], stock_levels: Mapping[str, int]) -> ReconciliationPlan:
        signature = stock_signature(lines, stock_levels)
        if signature == self.last_signature:
            return ReconciliationPlan(skipped=True, signature=signature)

        adjustments = []
        planned = {}
        for line in lines:
            if not line.is_tracked or line.product_id not in stock_levels:
                continue

            available = int(stock_levels[line.product_id])
            if line.quantity <= available:
                continue

            # quantity never drops below 1; a sold-out line is flagged instead
            new_quantity = max(1, available)
            adjustments.append(
                StockAdjustment(
                    key=line.key,
                    product_name=line.name,
                    previous_quantity=line.quantity,
                    new_quantity=new_quantity,
                    available_stock=available,
                )
            )
            planned[line.key] = new_quantity

        # The stored signature describes the state after the plan is applied.
        after = [
            replace(line, quantity=planned[line.key]) if line.key in planned else line
            for line in lines
        ]
        self.last_signature = stock_signature(after, stock_levels)

        return ReconciliationPlan(
            skipped=False,
            adjustments=tuple(adjustments),
            signature=self.last_signature,
        )

