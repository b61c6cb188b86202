# pos/services/vat_resolver.py

"""
VAT RATE RESOLUTION (PURE)

Priority cascade, first applicable source wins:
1. Product rate, when present and non-zero
2. Active configuration for (store, category), category compared case-insensitively
3. Store default rate, when non-zero
4. 0 (system default)

RULES:
- No I/O, no mutation of inputs
- Configurations are checked in the order supplied; the first match wins
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable

from pos.services.ports import VatConfig

ZERO = Decimal("0")


class VatRateSource(str, Enum):
    PRODUCT = "product"
    CATEGORY = "category"
    STORE_DEFAULT = "store_default"
    SYSTEM_DEFAULT = "system_default"


@dataclass(frozen=True)
class ResolvedVatRate:
    rate: Decimal
    source: VatRateSource


def _rate(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not rate.is_finite():
        return None
    return rate


def _normalize_category(category) -> str:
    return (category or "").strip().casefold()


def find_category_config(
    *,
    category: str | None,
    store_id: str | None,
    vat_configs: Iterable[VatConfig],
) -> VatConfig | None:
    if store_id is None or not _normalize_category(category):
        return None

    wanted = _normalize_category(category)
    for config in vat_configs:
        if not config.active:
            continue
        if str(config.store_id) != str(store_id):
            continue
        if _normalize_category(config.category) == wanted:
            return config
    return None


def resolve_vat_rate(
    *,
    category: str | None,
    product_vat_rate=None,
    store_id: str | None,
    store_default_vat_rate=None,
    vat_configs: Iterable[VatConfig] = (),
) -> ResolvedVatRate:
    product_rate = _rate(product_vat_rate)
    if product_rate is not None and product_rate != ZERO:
        return ResolvedVatRate(product_rate, VatRateSource.PRODUCT)

    config = find_category_config(
        category=category,
        store_id=store_id,
        vat_configs=vat_configs,
    )
    if config is not None:
        return ResolvedVatRate(Decimal(config.rate), VatRateSource.CATEGORY)

    store_rate = _rate(store_default_vat_rate)
    if store_rate is not None and store_rate != ZERO:
        return ResolvedVatRate(store_rate, VatRateSource.STORE_DEFAULT)

    return ResolvedVatRate(ZERO, VatRateSource.SYSTEM_DEFAULT)
