"""
PATH: pos/serializers/snapshot.py

CART SNAPSHOT SERIALIZERS

Purpose:
- Validate persisted cart snapshots and held-sale payloads before they are
  turned back into cart state.
- Render a CartState into the JSON-safe shape that is persisted.

Rules:
- Decimals are written as strings and read back without rounding.
- A line needs a product_id (catalog item) or a sku (ad-hoc item).
- Held-sale payloads may use camelCase keys (productId, unitPrice,
  transactionNumber, ...); they are accepted as aliases.
"""

from collections.abc import Mapping
from decimal import Decimal

from rest_framework import serializers

from pos.services.cart_state import DiscountType

ZERO = Decimal("0")
DISCOUNT_TYPE_CHOICES = [t.value for t in DiscountType]

LINE_ALIASES = {
    "productId": "product_id",
    "unitPrice": "unit_price",
    "price": "unit_price",
    "vatRate": "vat_rate",
    "discountAmount": "discount_amount",
    "discountType": "discount_type",
    "storeId": "store_id",
    "stockSnapshot": "stock_snapshot",
    "productName": "name",
    "productVatRate": "product_vat_rate",
}


def _apply_aliases(data, aliases):
    if not isinstance(data, Mapping):
        return data
    data = dict(data)
    for alias, field in aliases.items():
        if alias in data and field not in data:
            data[field] = data.pop(alias)
    return data


def _decimal(**kwargs):
    return serializers.DecimalField(max_digits=None, decimal_places=None, **kwargs)


class CartLineSnapshotSerializer(serializers.Serializer):
    product_id = serializers.CharField(allow_null=True, required=False, default=None)
    sku = serializers.CharField(allow_blank=True, required=False, default="")
    name = serializers.CharField(allow_blank=True, required=False, default="")
    unit_price = _decimal(min_value=ZERO)
    quantity = serializers.IntegerField(min_value=1)
    vat_rate = _decimal(min_value=ZERO, required=False, default=ZERO)
    discount_amount = _decimal(allow_null=True, required=False, default=None)
    discount_type = serializers.ChoiceField(
        choices=DISCOUNT_TYPE_CHOICES,
        allow_null=True,
        required=False,
        default=None,
    )
    store_id = serializers.CharField(allow_null=True, required=False, default=None)
    stock_snapshot = serializers.IntegerField(allow_null=True, required=False, default=None)
    category = serializers.CharField(allow_null=True, allow_blank=True, required=False, default=None)
    product_vat_rate = _decimal(min_value=ZERO, allow_null=True, required=False, default=None)

    def to_internal_value(self, data):
        return super().to_internal_value(_apply_aliases(data, LINE_ALIASES))

    def validate(self, attrs):
        if not attrs.get("product_id") and not attrs.get("sku"):
            raise serializers.ValidationError("A cart line needs a product_id or a sku.")
        if (attrs.get("discount_amount") is None) != (attrs.get("discount_type") is None):
            attrs["discount_amount"] = None
            attrs["discount_type"] = None
        return attrs

    def to_representation(self, instance):
        data = super().to_representation(instance)
        discount_type = getattr(instance, "discount_type", None)
        data["discount_type"] = DiscountType(discount_type).value if discount_type else None
        return data


class TransactionDiscountSnapshotSerializer(serializers.Serializer):
    amount = _decimal(min_value=ZERO, required=False, default=ZERO)
    type = serializers.ChoiceField(
        choices=DISCOUNT_TYPE_CHOICES,
        allow_null=True,
        required=False,
        default=None,
    )
    original_value = _decimal(min_value=ZERO, required=False, default=ZERO)

    def to_representation(self, instance):
        data = super().to_representation(instance)
        discount_type = getattr(instance, "type", None)
        data["type"] = DiscountType(discount_type).value if discount_type else None
        return data


class CartSnapshotSerializer(serializers.Serializer):
    lines = CartLineSnapshotSerializer(many=True, required=False, default=list)
    current_customer_id = serializers.CharField(allow_null=True, required=False, default=None)
    current_store_id = serializers.CharField(allow_null=True, required=False, default=None)
    transaction_number = serializers.CharField(
        allow_null=True,
        allow_blank=True,
        required=False,
        default=None,
    )
    transaction_discount = TransactionDiscountSnapshotSerializer(required=False, default=None, allow_null=True)
    resumed_transaction_id = serializers.CharField(allow_null=True, required=False, default=None)


class HeldSaleSerializer(serializers.Serializer):
    """
    A parked sale handed back to the register: its items and transaction number.
    """

    items = CartLineSnapshotSerializer(many=True, required=False, default=list)
    transaction_number = serializers.CharField(
        allow_null=True,
        allow_blank=True,
        required=False,
        default=None,
    )

    def to_internal_value(self, data):
        return super().to_internal_value(
            _apply_aliases(data, {"transactionNumber": "transaction_number"})
        )
