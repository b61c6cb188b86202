# pos/services/exceptions.py

"""
CART ENGINE ERRORS

Expected conditions (missing store, insufficient stock, stale async results,
persistence trouble) are raised by the building blocks and handled inside
CartService: the mutation is rejected or the value clamped, and a notification
is published. Only programmer errors escape to callers.
"""


class CartError(Exception):
    """Base cart engine exception"""


class CartValidationError(CartError):
    """Input rejected before any mutation (bad quantity, missing store, ...)."""


class NoStoreSelectedError(CartValidationError):
    pass


class OutOfStockError(CartError):
    def __init__(self, message: str = "", *, available_stock: int = 0, requested_quantity: int = 0):
        super().__init__(message or "Insufficient stock")
        self.available_stock = available_stock
        self.requested_quantity = requested_quantity


class DiscountError(CartError):
    pass


class StaleDataError(CartError):
    """An async result superseded by a newer request."""


class PersistenceError(CartError):
    pass


class ComputationError(CartError):
    """Totals left their valid bounds. Unreachable while clamping holds."""


class TransactionNumberError(CartError):
    """The numbering service could not issue a transaction number."""
