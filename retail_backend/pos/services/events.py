# pos/services/events.py

"""
CART NOTIFICATIONS

Outbound, fire-and-forget events. The cart never renders anything: whichever
layer subscribes decides how to show them.

Listeners register on a CartEventBus owned by one CartService instance (no
process-wide dispatch), optionally filtered by event type.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartEvent:
    pass


@dataclass(frozen=True)
class OutOfStock(CartEvent):
    product_name: str
    available_stock: int
    requested_quantity: int
    current_cart_quantity: int = 0


@dataclass(frozen=True)
class QuantityRejected(OutOfStock):
    """set_quantity asked for more than the last known stock."""


@dataclass(frozen=True)
class QuantityAdjusted(CartEvent):
    product_name: str
    new_quantity: int
    available_stock: int


@dataclass(frozen=True)
class CartFilteredByStore(CartEvent):
    removed_count: int
    store_id: str


@dataclass(frozen=True)
class NoStoreSelected(CartEvent):
    pass


@dataclass(frozen=True)
class DiscountRejected(CartEvent):
    reason: str


@dataclass(frozen=True)
class TransactionNumberAssigned(CartEvent):
    transaction_number: str


Listener = Callable[[CartEvent], None]


class CartEventBus:
    def __init__(self):
        self._listeners: list[tuple[type | None, Listener]] = []

    def subscribe(self, listener: Listener, event_type: type | None = None) -> Callable[[], None]:
        """
        Register a listener. Returns a callable that unsubscribes it.
        """
        entry = (event_type, listener)
        self._listeners.append(entry)

        def unsubscribe():
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def publish(self, event: CartEvent) -> None:
        for event_type, listener in list(self._listeners):
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                listener(event)
            except Exception:
                # A broken listener must not undo or block a committed mutation.
                logger.exception(
                    "Cart event listener failed",
                    extra={"event": type(event).__name__},
                )
