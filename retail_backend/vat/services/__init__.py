from .configurations import DjangoVATConfigurationService, vat_config_for

__all__ = ["DjangoVATConfigurationService", "vat_config_for"]
