# pos/tests/test_persistence.py

import json
from decimal import Decimal

from django.test import SimpleTestCase

from pos.services.cart_state import AdHoc, ByProduct, CartState, DiscountType
from pos.services.exceptions import PersistenceError
from pos.services.persistence import CartPersistence, InMemorySnapshotStore, dumps, loads
from pos.services.ports import CatalogItem

from .fakes import STORE_A, BrokenSnapshotStore, FakeNumbering, catalog_item, make_service


class CartPersistenceTests(SimpleTestCase):
    """
    GUARANTEES:
    - snapshot -> restore reproduces the same grand total
    - unreadable snapshots degrade to an empty, valid cart
    - write failures are logged, never raised
    """

    def build_cart(self, snapshot_store):
        service, _ = make_service(snapshot_store=snapshot_store, numbering=FakeNumbering())
        service.add_item(catalog_item("p1", price="19.99", vat_rate="7.5"), 3)
        service.issue_pending_transaction_number()
        service.add_item(catalog_item("p2", price="0.333", category="Snacks"), 2)
        service.add_item(CatalogItem(id=None, name="Gift wrap", sku="WRAP", price="1.25"), 1)
        service.set_discount(ByProduct("p1"), "12.5")
        service.set_discount(AdHoc("WRAP"), "0.5", "fixed")
        service.set_customer("cust-9")
        service.apply_transaction_discount("4.20", "fixed")
        return service

    def test_round_trip_keeps_grand_total(self):
        store = InMemorySnapshotStore()
        original = self.build_cart(store)

        restored, _ = make_service(snapshot_store=store)

        self.assertEqual(restored.grand_total(), original.grand_total())
        self.assertEqual(restored.totals(), original.totals())
        self.assertEqual(restored.lines, original.lines)
        self.assertEqual(restored.transaction_number, "202610160001")
        self.assertEqual(restored.current_customer_id, "cust-9")
        self.assertEqual(restored.current_store_id, STORE_A)
        self.assertEqual(restored.transaction_discount.type, DiscountType.FIXED)

    def test_snapshot_written_under_one_fixed_key(self):
        store = InMemorySnapshotStore()
        self.build_cart(store)

        self.assertEqual(list(store.blobs), ["pos-store"])
        payload = json.loads(store.blobs["pos-store"])
        self.assertEqual(payload["lines"][0]["unit_price"], "19.99")
        self.assertNotIn("total", payload["lines"][0])

    def test_corrupt_snapshot_restores_empty_cart(self):
        for blob in ("{broken", json.dumps({"lines": [{"quantity": -1}]}), json.dumps([1, 2])):
            with self.subTest(blob=blob):
                store = InMemorySnapshotStore({"pos-store": blob})
                with self.assertLogs("pos.services.persistence", level="WARNING"):
                    state = CartPersistence(store).restore()
                self.assertEqual(state, CartState())

    def test_store_failures_never_surface(self):
        with self.assertLogs("pos.services.persistence", level="WARNING"):
            service, _ = make_service(snapshot_store=BrokenSnapshotStore())

        with self.assertLogs("pos.services.persistence", level="ERROR"):
            line = service.add_item(catalog_item("p1"), 1)

        self.assertIsNotNone(line)
        self.assertEqual(service.item_count(), 1)

    def test_loads_rejects_invalid_payload(self):
        with self.assertRaises(PersistenceError):
            loads("not json")

    def test_restore_drops_lines_outside_current_store(self):
        state = CartState(current_store_id=STORE_A)
        blob = json.loads(dumps(state))
        blob["lines"] = [
            {"product_id": "p1", "sku": "S1", "name": "A", "unit_price": "1", "quantity": 1, "store_id": STORE_A},
            {"product_id": "p2", "sku": "S2", "name": "B", "unit_price": "1", "quantity": 1, "store_id": "elsewhere"},
        ]
        store = InMemorySnapshotStore({"pos-store": json.dumps(blob)})

        with self.assertLogs("pos.services.cart_service", level="WARNING"):
            service, _ = make_service(snapshot_store=store)

        self.assertEqual([line.key for line in service.lines], [ByProduct("p1")])

    def test_decimals_survive_without_rounding(self):
        state = CartState(current_store_id=STORE_A)
        blob = json.loads(dumps(state))
        blob["lines"] = [
            {"product_id": "p1", "sku": "S1", "name": "A", "unit_price": "0.3333", "quantity": 3, "store_id": STORE_A},
        ]

        restored = loads(json.dumps(blob))

        self.assertEqual(restored.lines[0].unit_price, Decimal("0.3333"))
