# vat/services/configurations.py

"""
VAT CONFIGURATION SERVICE

Purpose:
- List the active VAT configurations of a store as plain values for the cart's
  VAT resolver.

Ordering is stable (created_at, id) so "first match wins" is deterministic.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError

from pos.services.ports import VatConfig
from vat.models import VATConfiguration


def vat_config_for(config: VATConfiguration) -> VatConfig:
    return VatConfig(
        store_id=str(config.store_id),
        category=config.category,
        rate=config.vat_rate,
        active=bool(config.is_active),
        description=config.description or "",
    )


class DjangoVATConfigurationService:
    def list_active_configs(self, store_id) -> list[VatConfig]:
        if not store_id:
            return []

        try:
            rows = list(
                VATConfiguration.objects.filter(store_id=store_id, is_active=True).order_by(
                    "created_at", "id"
                )
            )
        except ValidationError:
            return []

        return [vat_config_for(row) for row in rows]
