# pos/services/cart_state.py

"""
CART STATE (IN-PROGRESS SALE)

Purpose:
- Hold the cart lines and transaction metadata owned by CartService.

Rules:
- A line is keyed either by a catalog product (ByProduct) or, for ad-hoc
  items, by SKU (AdHoc). The two never match each other.
- quantity is an integer >= 1.
- Line totals are derived (pricing.line_total), never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Union

from pos.services.ports import CatalogItem  # noqa: F401  (re-exported)


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@dataclass(frozen=True)
class ByProduct:
    product_id: str

    def __post_init__(self):
        object.__setattr__(self, "product_id", str(self.product_id))


@dataclass(frozen=True)
class AdHoc:
    sku: str


CartLineKey = Union[ByProduct, AdHoc]


@dataclass
class CartLine:
    key: CartLineKey
    name: str
    sku: str
    unit_price: Decimal
    quantity: int
    vat_rate: Decimal = Decimal("0")
    discount_amount: Decimal | None = None
    discount_type: DiscountType | None = None
    store_id: str | None = None
    stock_snapshot: int | None = None
    category: str | None = None
    product_vat_rate: Decimal | None = None

    @property
    def product_id(self) -> str | None:
        if isinstance(self.key, ByProduct):
            return self.key.product_id
        return None

    @property
    def is_tracked(self) -> bool:
        return isinstance(self.key, ByProduct)

    @property
    def has_discount(self) -> bool:
        return self.discount_amount is not None and self.discount_type is not None

    def clear_discount(self) -> None:
        self.discount_amount = None
        self.discount_type = None


@dataclass
class TransactionDiscount:
    amount: Decimal = Decimal("0")
    type: DiscountType | None = None
    original_value: Decimal = Decimal("0")

    @property
    def is_set(self) -> bool:
        return self.type is not None and self.amount > 0


@dataclass
class CartState:
    lines: list[CartLine] = field(default_factory=list)
    current_customer_id: str | None = None
    current_store_id: str | None = None
    transaction_number: str | None = None
    transaction_discount: TransactionDiscount = field(default_factory=TransactionDiscount)
    resumed_transaction_id: str | None = None

    def find(self, key: CartLineKey) -> CartLine | None:
        for line in self.lines:
            if line.key == key:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.lines
