from .vat_configuration import VATConfiguration

__all__ = ["VATConfiguration"]
