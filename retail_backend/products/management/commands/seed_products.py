"""
PATH: products/management/commands/seed_products.py

Seed a demo catalog for the cart:

- two stores (one VAT-enabled with a default rate, one without VAT)
- categories, products and store-scoped stock batches
- a category VAT configuration per store

Idempotent: rows are matched on sku / code / name and left alone if present.
"""

from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from products.models import Category, Product, StockBatch
from store.models import Store
from vat.models import VATConfiguration


STORES = [
    # code, name, vat_enabled, default_vat_rate
    ("MAIN", "Main Street", True, Decimal("5.00")),
    ("DUTY", "Duty Free", False, Decimal("0.00")),
]

CATEGORIES = ["Beverages", "Bakery", "Household"]

PRODUCTS = [
    # sku, name, category, unit_price, vat_rate, store code, stock
    ("BEV-COLA", "Cola 330ml", "Beverages", Decimal("1.50"), None, "MAIN", 48),
    ("BEV-WATER", "Still Water 1L", "Beverages", Decimal("0.90"), None, "MAIN", 60),
    ("BAK-BREAD", "Sourdough Loaf", "Bakery", Decimal("3.20"), Decimal("0.00"), "MAIN", 12),
    ("HOU-SOAP", "Dish Soap", "Household", Decimal("2.75"), Decimal("12.50"), "MAIN", 20),
    ("DUT-PERF", "Eau de Parfum", "Household", Decimal("45.00"), None, "DUTY", 5),
]

VAT_RULES = [
    # store code, category, vat_rate
    ("MAIN", "Beverages", Decimal("10.00")),
    ("DUTY", "Household", Decimal("0.00")),
]


class Command(BaseCommand):
    help = "Seed stores, categories, products, stock batches and VAT configurations"

    def add_arguments(self, parser):
        parser.add_argument(
            "--expiry-days",
            type=int,
            default=180,
            help="Days until seeded stock batches expire (default: 180).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding demo catalog..."))

        # -------------------------------
        # STORES
        # -------------------------------
        stores = {}
        for code, name, vat_enabled, default_rate in STORES:
            store, _ = Store.objects.get_or_create(
                code=code,
                defaults={
                    "name": name,
                    "vat_enabled": vat_enabled,
                    "default_vat_rate": default_rate,
                },
            )
            stores[code] = store

        # -------------------------------
        # CATEGORIES
        # -------------------------------
        categories = {}
        for name in CATEGORIES:
            categories[name], _ = Category.objects.get_or_create(name=name)

        # -------------------------------
        # PRODUCTS + STOCK
        # -------------------------------
        expiry = timezone.localdate() + timedelta(days=options["expiry_days"])
        created_products = 0

        for sku, name, cat, price, vat_rate, store_code, stock in PRODUCTS:
            product, created = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "category": categories[cat],
                    "unit_price": price,
                    "vat_rate": vat_rate,
                    "store": stores[store_code],
                },
            )
            if not created:
                continue

            created_products += 1
            StockBatch.objects.create(
                product=product,
                store=stores[store_code],
                batch_number="SEED-1",
                expiry_date=expiry,
                quantity_received=stock,
                quantity_remaining=stock,
            )

        # -------------------------------
        # VAT CONFIGURATIONS
        # -------------------------------
        for store_code, category, rate in VAT_RULES:
            VATConfiguration.objects.get_or_create(
                store=stores[store_code],
                category=category,
                is_active=True,
                defaults={"vat_rate": rate},
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Seeded {len(stores)} stores and {created_products} new products."
            )
        )
