from .cart_snapshot import CartSnapshot
from .transaction_counter import DailyTransactionCounter

__all__ = ["CartSnapshot", "DailyTransactionCounter"]
