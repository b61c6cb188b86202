from .catalog import DjangoCatalog, available_stock_for_store, stock_levels_for_store

__all__ = [
    "DjangoCatalog",
    "available_stock_for_store",
    "stock_levels_for_store",
]
