"""
PATH: pos/services/__init__.py

POS cart & pricing engine export surface.
ORM-backed pieces (numbering, ModelSnapshotStore) are imported from their modules.
"""

from .cart_service import CartService
from .cart_state import AdHoc, ByProduct, CartLine, CartState, DiscountType, TransactionDiscount
from .events import (
    CartEventBus,
    CartFilteredByStore,
    DiscountRejected,
    NoStoreSelected,
    OutOfStock,
    QuantityAdjusted,
    QuantityRejected,
    TransactionNumberAssigned,
)
from .persistence import CartPersistence, InMemorySnapshotStore
from .ports import CatalogItem, StoreContext, VatConfig

__all__ = [
    "AdHoc",
    "ByProduct",
    "CartEventBus",
    "CartFilteredByStore",
    "CartLine",
    "CartPersistence",
    "CartService",
    "CartState",
    "CatalogItem",
    "DiscountRejected",
    "DiscountType",
    "InMemorySnapshotStore",
    "NoStoreSelected",
    "OutOfStock",
    "QuantityAdjusted",
    "QuantityRejected",
    "StoreContext",
    "TransactionDiscount",
    "TransactionNumberAssigned",
    "VatConfig",
]
