# vat/tests/test_configurations.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from store.models import Store
from vat.models import VATConfiguration
from vat.services import DjangoVATConfigurationService


class VATConfigurationTests(TestCase):
    """
    GUARANTEES:
    - one active configuration per (store, category), case-insensitive
    - rates are never negative
    - only active configurations of the requested store are listed, oldest first
    """

    def setUp(self):
        self.store = Store.objects.create(name="Main Street")
        self.other = Store.objects.create(name="Harbour")

    def test_duplicate_active_category_rejected(self):
        VATConfiguration.objects.create(store=self.store, category="Beverages", vat_rate=Decimal("8.00"))

        with self.assertRaises(ValidationError):
            VATConfiguration.objects.create(store=self.store, category=" beverages ", vat_rate=Decimal("9.00"))

    def test_inactive_duplicate_allowed(self):
        VATConfiguration.objects.create(store=self.store, category="Beverages", vat_rate=Decimal("8.00"))
        VATConfiguration.objects.create(
            store=self.store, category="Beverages", vat_rate=Decimal("9.00"), is_active=False
        )

        self.assertEqual(VATConfiguration.objects.count(), 2)

    def test_negative_rate_rejected(self):
        with self.assertRaises(ValidationError):
            VATConfiguration.objects.create(store=self.store, category="Snacks", vat_rate=Decimal("-0.01"))

    def test_blank_category_normalized_to_null(self):
        config = VATConfiguration.objects.create(store=self.store, category="   ", vat_rate=Decimal("1.00"))
        self.assertIsNone(config.category)

    def test_list_active_configs(self):
        first = VATConfiguration.objects.create(store=self.store, category="Beverages", vat_rate=Decimal("8.00"))
        second = VATConfiguration.objects.create(store=self.store, category="Snacks", vat_rate=Decimal("3.00"))
        VATConfiguration.objects.create(store=self.store, category="Tobacco", vat_rate=Decimal("20.00"), is_active=False)
        VATConfiguration.objects.create(store=self.other, category="Beverages", vat_rate=Decimal("6.00"))

        configs = DjangoVATConfigurationService().list_active_configs(self.store.id)

        self.assertEqual([c.category for c in configs], [first.category, second.category])
        self.assertEqual(configs[0].rate, Decimal("8.00"))
        self.assertEqual(configs[0].store_id, str(self.store.id))

    def test_no_store_lists_nothing(self):
        self.assertEqual(DjangoVATConfigurationService().list_active_configs(None), [])
        self.assertEqual(DjangoVATConfigurationService().list_active_configs("not-a-uuid"), [])
