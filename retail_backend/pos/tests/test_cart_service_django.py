# pos/tests/test_cart_service_django.py

from datetime import date, timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from pos.models import CartSnapshot
from pos.services import ByProduct, CartService, QuantityAdjusted
from products.models import Category, Product, StockBatch
from store.models import Store
from vat.models import VATConfiguration


class CartServiceWiringTests(TestCase):
    """
    End-to-end with the ORM-backed collaborators (catalog, VAT, stores,
    snapshots, numbering).
    """

    def setUp(self):
        self.store = Store.objects.create(name="Main Street", default_vat_rate=Decimal("2.00"))
        self.other_store = Store.objects.create(name="Harbour")
        self.beverages = Category.objects.create(name="Beverages")

        self.cola = Product.objects.create(
            store=self.store,
            category=self.beverages,
            sku="COLA-330",
            name="Cola 330ml",
            unit_price=Decimal("1.50"),
        )
        self.batch = StockBatch.objects.create(
            product=self.cola,
            batch_number="B-1",
            quantity_received=6,
            quantity_remaining=6,
            expiry_date=date.today() + timedelta(days=90),
        )
        VATConfiguration.objects.create(store=self.store, category="beverages", vat_rate=Decimal("8.00"))

    def test_sale_flow_with_django_collaborators(self):
        service = CartService.from_settings(store_id=self.store.id)
        self.assertTrue(service.refresh_vat_configs())

        item = service.catalog.get_product(self.cola.id)
        line = service.add_item(item, 4)
        self.assertIsNone(service.transaction_number)
        self.assertTrue(service.issue_pending_transaction_number())

        self.assertEqual(line.vat_rate, Decimal("8.00"))
        self.assertEqual(line.stock_snapshot, 6)
        self.assertEqual(service.subtotal(), Decimal("6.00"))
        self.assertEqual(service.vat(), Decimal("0.48"))
        self.assertTrue(service.transaction_number.startswith(timezone.localdate().strftime("%Y%m%d")))
        self.assertTrue(CartSnapshot.objects.filter(key="pos-store-test").exists())

    def test_restart_restores_snapshot(self):
        service = CartService.from_settings(store_id=self.store.id)
        service.add_item(service.catalog.get_product(self.cola.id), 2)
        total = service.grand_total()

        restarted = CartService.from_settings()

        self.assertEqual(restarted.current_store_id, str(self.store.id))
        self.assertEqual(restarted.grand_total(), total)
        self.assertEqual(restarted.stores.current_store.id, str(self.store.id))

    def test_stock_refresh_clamps_to_database_stock(self):
        service = CartService.from_settings(store_id=self.store.id)
        service.add_item(service.catalog.get_product(self.cola.id), 5)
        adjusted = []
        service.events.subscribe(adjusted.append, QuantityAdjusted)

        self.batch.quantity_remaining = 2
        self.batch.save()
        service.refresh_stock()

        self.assertEqual(service.find_line(ByProduct(self.cola.id)).quantity, 2)
        self.assertEqual(len(adjusted), 1)

    def test_switching_store_purges_lines(self):
        service = CartService.from_settings(store_id=self.store.id)
        service.add_item(service.catalog.get_product(self.cola.id), 1)

        self.assertEqual(service.switch_store(self.other_store.id), 1)
        self.assertEqual(service.lines, [])
        self.assertEqual(service.stores.current_store.id, str(self.other_store.id))
