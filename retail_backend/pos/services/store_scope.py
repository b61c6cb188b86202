# pos/services/store_scope.py

"""
STORE SCOPE FILTER

All cart lines belong to the active store.
- No store: every line is dropped
- Otherwise lines whose store_id differs from the new store are removed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from pos.services.cart_state import CartLine


@dataclass(frozen=True)
class StoreFilterResult:
    kept: list[CartLine]
    removed: list[CartLine]

    @property
    def removed_count(self) -> int:
        return len(self.removed)


def filter_lines_by_store(lines: Sequence[CartLine], store_id: str | None) -> StoreFilterResult:
    if store_id is None:
        return StoreFilterResult(kept=[], removed=list(lines))

    store_id = str(store_id)
    kept, removed = [], []
    for line in lines:
        (kept if line.store_id == store_id else removed).append(line)
    return StoreFilterResult(kept=kept, removed=removed)
