# products/tests/test_stock.py

from datetime import date, timedelta

from django.core.exceptions import ValidationError
from django.test import TestCase
from decimal import Decimal

from products.models import Product, StockBatch
from store.models import Store


class ProductStockTests(TestCase):
    """
    Stock-level tests.

    GUARANTEES:
    - Stock quantities are non-negative
    - Batches belong to products (and to the product's store)
    - quantity_received is immutable, is_active is derived
    """

    def setUp(self):
        self.store = Store.objects.create(name="Main Street")
        self.product = Product.objects.create(
            store=self.store,
            name="Sparkling Water 1L",
            sku="SPW-1L",
            unit_price=Decimal("1.20"),
            is_active=True,
        )

        self.batch = StockBatch.objects.create(
            product=self.product,
            batch_number="BATCH-001",
            quantity_received=50,
            quantity_remaining=50,
            expiry_date=date.today() + timedelta(days=365),
        )

    def test_batch_inherits_product_store(self):
        """Batch store is derived from the product when not given."""
        self.assertEqual(self.batch.store_id, self.store.id)

    def test_total_stock_sums_active_batches(self):
        StockBatch.objects.create(
            product=self.product,
            batch_number="BATCH-002",
            quantity_received=30,
            quantity_remaining=30,
            expiry_date=date.today() + timedelta(days=400),
        )

        self.assertEqual(self.product.stock_batches.count(), 2)
        self.assertEqual(self.product.total_stock_db, 80)

    def test_empty_batch_becomes_inactive(self):
        self.batch.quantity_remaining = 0
        self.batch.save(update_fields=["quantity_remaining", "is_active"])

        self.batch.refresh_from_db()
        self.assertFalse(self.batch.is_active)
        self.assertEqual(self.product.total_stock_db, 0)

    def test_quantity_received_is_immutable(self):
        self.batch.quantity_received = 60
        with self.assertRaises(ValidationError):
            self.batch.save()

    def test_remaining_cannot_exceed_received(self):
        with self.assertRaises(ValidationError):
            StockBatch.objects.create(
                product=self.product,
                batch_number="BATCH-003",
                quantity_received=5,
                quantity_remaining=6,
                expiry_date=date.today() + timedelta(days=10),
            )

    def test_batch_store_must_match_product_store(self):
        other = Store.objects.create(name="Harbour")
        with self.assertRaises(ValidationError):
            StockBatch.objects.create(
                store=other,
                product=self.product,
                batch_number="BATCH-004",
                quantity_received=5,
                quantity_remaining=5,
                expiry_date=date.today() + timedelta(days=10),
            )


class ProductValidationTests(TestCase):
    def test_price_must_be_positive(self):
        with self.assertRaises(ValidationError):
            Product.objects.create(name="Freebie", sku="FREE-1", unit_price=Decimal("0.00"))

    def test_vat_rate_cannot_be_negative(self):
        with self.assertRaises(ValidationError):
            Product.objects.create(
                name="Odd", sku="ODD-1", unit_price=Decimal("1.00"), vat_rate=Decimal("-1.00")
            )
