# store/services/directory.py

"""
STORE DIRECTORY

Purpose:
- Resolve the active store context (id + default VAT rate) for the POS cart.
- Cache the selected store so cart mutations never hit the database for it.

Rules:
- Only active stores can be selected.
- Selecting an unknown / inactive store clears the current store (fail closed).
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError

from pos.services.ports import StoreContext
from store.models import Store

logger = logging.getLogger(__name__)


def store_context_for(store: Store) -> StoreContext:
    return StoreContext(
        id=str(store.id),
        default_vat_rate=store.effective_default_vat_rate,
        name=store.name,
    )


class ModelStoreDirectory:
    """
    ORM-backed Store Directory collaborator.
    """

    def __init__(self, current_store_id=None):
        self._current: StoreContext | None = None
        if current_store_id:
            self.select(current_store_id)

    @property
    def current_store(self) -> StoreContext | None:
        return self._current

    def get(self, store_id) -> StoreContext | None:
        if not store_id:
            return None
        try:
            store = Store.objects.filter(id=store_id, is_active=True).first()
        except (ValueError, ValidationError):
            # malformed UUID
            return None
        if store is None:
            return None
        return store_context_for(store)

    def select(self, store_id) -> StoreContext | None:
        context = self.get(store_id)
        if context is None and store_id:
            logger.warning("Store not found or inactive", extra={"store_id": str(store_id)})
        self._current = context
        return context

    def clear(self) -> None:
        self._current = None
