from .snapshot import (
    CartLineSnapshotSerializer,
    CartSnapshotSerializer,
    HeldSaleSerializer,
    TransactionDiscountSnapshotSerializer,
)

__all__ = [
    "CartLineSnapshotSerializer",
    "CartSnapshotSerializer",
    "HeldSaleSerializer",
    "TransactionDiscountSnapshotSerializer",
]
