# pos/services/ports.py

"""
POS COLLABORATOR PORTS

Purpose:
- Describe what the cart engine consumes from the outside world.
- Keep the engine free of ORM imports: Django-backed implementations live in
  products / vat / store / pos.services.numbering and are injected.

Shapes returned by collaborators are plain frozen dataclasses so that fakes in
tests and ORM adapters produce exactly the same values.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Protocol, Sequence


@dataclass(frozen=True)
class CatalogItem:
    """
    A sellable item as the catalog reports it.

    id is None for ad-hoc (custom) items that only carry a SKU.
    stock is the last known available quantity (None when the catalog does not track it).
    """

    id: str | None
    name: str
    sku: str = ""
    price: Decimal | str | None = None
    stock: int | None = None
    vat_rate: Decimal | str | None = None
    category: str | None = None


@dataclass(frozen=True)
class VatConfig:
    store_id: str
    category: str | None
    rate: Decimal
    active: bool = True
    description: str = ""


@dataclass(frozen=True)
class StoreContext:
    id: str
    default_vat_rate: Decimal | None = None
    name: str = ""


class Catalog(Protocol):
    def get_product(self, product_id: str) -> CatalogItem | None: ...

    def get_stock_levels(self, product_ids: Iterable[str]) -> Mapping[str, int]: ...


class VATConfigurationService(Protocol):
    def list_active_configs(self, store_id: str) -> Sequence[VatConfig]: ...


class StoreDirectory(Protocol):
    @property
    def current_store(self) -> StoreContext | None: ...


class SnapshotStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, blob: str) -> None: ...


class TransactionNumbering(Protocol):
    def issue_number(self) -> str: ...
