from .directory import ModelStoreDirectory, store_context_for

__all__ = ["ModelStoreDirectory", "store_context_for"]
