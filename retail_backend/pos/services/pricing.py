# pos/services/pricing.py

"""
PRICING ENGINE (PURE)

Purpose:
- Derive line totals, cart subtotal, VAT and grand total on demand.

Rules:
- Full Decimal precision internally; round only at presentation (present_money)
- Line total is clamped to [0, unit_price * quantity]
- Subtotal and VAT use the undiscounted line base. Line discounts only
  affect the displayed line total.
- A raw discount without an explicit type: > 100 is a fixed amount,
  anything else a percentage
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from pos.services.cart_state import CartLine, DiscountType
from pos.services.exceptions import ComputationError, DiscountError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWOPLACES = Decimal("0.01")


# ============================================================
# HELPERS
# ============================================================

def present_money(value) -> Decimal:
    return Decimal(value or 0).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def parse_discount_value(raw) -> Decimal | None:
    """
    Returns a positive Decimal, or None when the raw value is empty,
    unparsable, non-finite or not positive.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite() or value <= ZERO:
        return None
    return value


def infer_discount_type(value: Decimal) -> DiscountType:
    # Lossy: 150 reads as a fixed 150, never as 150%.
    if value > HUNDRED:
        return DiscountType.FIXED
    return DiscountType.PERCENTAGE


# ============================================================
# LINES
# ============================================================

def line_base_total(line: CartLine) -> Decimal:
    return Decimal(line.unit_price) * line.quantity


def line_discount(line: CartLine) -> Decimal:
    base = line_base_total(line)
    if not line.has_discount:
        return ZERO

    amount = Decimal(line.discount_amount)
    if line.discount_type == DiscountType.PERCENTAGE:
        discount = base * amount / HUNDRED
    else:
        discount = amount

    return min(max(discount, ZERO), base)


def line_total(line: CartLine) -> Decimal:
    base = line_base_total(line)
    total = base - line_discount(line)
    if total < ZERO or total > base:
        raise ComputationError(f"Line total {total} outside [0, {base}]")
    return total


def line_vat(line: CartLine) -> Decimal:
    return line_base_total(line) * Decimal(line.vat_rate or 0) / HUNDRED


# ============================================================
# CART
# ============================================================

def cart_subtotal(lines: Iterable[CartLine]) -> Decimal:
    return sum((line_base_total(line) for line in lines), ZERO)


def cart_vat(lines: Iterable[CartLine]) -> Decimal:
    return sum((line_vat(line) for line in lines), ZERO)


def grand_total(lines: Iterable[CartLine], transaction_discount_amount=ZERO) -> Decimal:
    lines = list(lines)
    net = cart_subtotal(lines) + cart_vat(lines)
    return net - Decimal(transaction_discount_amount or 0)


def transaction_discount_amount(value, discount_type: DiscountType, net_total: Decimal) -> Decimal:
    """
    Amount taken off the grand total by a transaction discount.

    percentage: value <= 100, applied to subtotal + VAT
    fixed:      value <= subtotal + VAT
    """
    amount = parse_discount_value(value)
    if amount is None:
        raise DiscountError("Please enter a valid discount amount")

    discount_type = DiscountType(discount_type)
    if discount_type == DiscountType.PERCENTAGE:
        if amount > HUNDRED:
            raise DiscountError("Percentage discount cannot exceed 100%")
        return net_total * amount / HUNDRED

    if amount > net_total:
        raise DiscountError("Discount cannot exceed the total amount")
    return amount


@dataclass(frozen=True)
class CartTotals:
    subtotal: Decimal
    vat: Decimal
    transaction_discount: Decimal
    grand_total: Decimal
    item_count: int

    @classmethod
    def for_lines(cls, lines: Iterable[CartLine], transaction_discount=ZERO) -> "CartTotals":
        lines = list(lines)
        return cls(
            subtotal=cart_subtotal(lines),
            vat=cart_vat(lines),
            transaction_discount=Decimal(transaction_discount or 0),
            grand_total=grand_total(lines, transaction_discount),
            item_count=sum(line.quantity for line in lines),
        )

    def presented(self) -> dict:
        return {
            "subtotal": present_money(self.subtotal),
            "vat": present_money(self.vat),
            "transaction_discount": present_money(self.transaction_discount),
            "grand_total": present_money(self.grand_total),
            "item_count": self.item_count,
        }
