# pos/tests/test_pricing.py

from decimal import Decimal

from django.test import SimpleTestCase

from pos.services.cart_state import DiscountType
from pos.services.exceptions import DiscountError
from pos.services.pricing import (
    CartTotals,
    cart_subtotal,
    cart_vat,
    grand_total,
    infer_discount_type,
    line_base_total,
    line_total,
    parse_discount_value,
    present_money,
    transaction_discount_amount,
)

from .fakes import make_line


class LineTotalTests(SimpleTestCase):
    """
    GUARANTEES:
    - line total is always within [0, unit_price * quantity]
    - discounts are re-derived from unit price, quantity and discount fields
    """

    def test_percentage_discount_on_line(self):
        """10.00 x 3 with 10% off shows 27.00."""
        line = make_line(price="10.00", quantity=3, discount="10", discount_type="percentage")
        self.assertEqual(present_money(line_total(line)), Decimal("27.00"))

    def test_fixed_discount_larger_than_base_clamps_to_zero(self):
        value = parse_discount_value("150")
        line = make_line(price="20.00", quantity=1, discount=value, discount_type=infer_discount_type(value))

        self.assertEqual(line.discount_type, DiscountType.FIXED)
        self.assertEqual(line_total(line), Decimal("0"))

    def test_line_total_bounded_for_any_discount(self):
        cases = [
            ("percentage", "0"),
            ("percentage", "33.3"),
            ("percentage", "100"),
            ("percentage", "250"),
            ("fixed", "0.01"),
            ("fixed", "29.99"),
            ("fixed", "10000"),
            (None, None),
        ]
        for discount_type, discount in cases:
            with self.subTest(discount_type=discount_type, discount=discount):
                line = make_line(price="9.99", quantity=3, discount=discount, discount_type=discount_type)
                total = line_total(line)
                self.assertGreaterEqual(total, Decimal("0"))
                self.assertLessEqual(total, line_base_total(line))

    def test_discount_follows_quantity_changes(self):
        line = make_line(price="10.00", quantity=2, discount="5", discount_type="fixed")
        self.assertEqual(line_total(line), Decimal("15.00"))

        line.quantity = 4
        self.assertEqual(line_total(line), Decimal("35.00"))


class CartTotalsTests(SimpleTestCase):
    """
    GUARANTEES:
    - subtotal and VAT are computed on the undiscounted base
    - grand total = subtotal + VAT - transaction discount
    - rounding happens only at presentation
    """

    def test_subtotal_and_vat_ignore_line_discounts(self):
        line = make_line(price="10.00", quantity=3, vat_rate="5", discount="10", discount_type="percentage")

        self.assertEqual(present_money(line_total(line)), Decimal("27.00"))
        self.assertEqual(present_money(cart_subtotal([line])), Decimal("30.00"))
        self.assertEqual(present_money(cart_vat([line])), Decimal("1.50"))

    def test_grand_total_subtracts_transaction_discount(self):
        lines = [
            make_line("p1", price="10.00", quantity=2, vat_rate="10"),
            make_line("p2", price="5.00", quantity=1, vat_rate="0"),
        ]
        self.assertEqual(grand_total(lines), Decimal("27.00"))
        self.assertEqual(grand_total(lines, Decimal("7.00")), Decimal("20.00"))

    def test_frozen_discount_larger_than_cart_is_not_clamped(self):
        """A discount frozen on a bigger cart still subtracts in full after lines go."""
        lines = [make_line(price="10.00", quantity=1, vat_rate="2")]
        self.assertEqual(grand_total(lines, Decimal("50.00")), Decimal("-39.80"))

    def test_full_precision_until_presentation(self):
        """Per-line rounding would give 0.03 here; accumulated precision gives 0.02."""
        lines = [make_line(f"p{i}", price="0.005", quantity=1) for i in range(3)]

        self.assertEqual(cart_subtotal(lines), Decimal("0.015"))
        self.assertEqual(present_money(cart_subtotal(lines)), Decimal("0.02"))

    def test_cart_totals_presented(self):
        lines = [make_line(price="10.00", quantity=3, vat_rate="5")]
        totals = CartTotals.for_lines(lines, Decimal("1.50"))

        self.assertEqual(totals.item_count, 3)
        self.assertEqual(
            totals.presented(),
            {
                "subtotal": Decimal("30.00"),
                "vat": Decimal("1.50"),
                "transaction_discount": Decimal("1.50"),
                "grand_total": Decimal("30.00"),
                "item_count": 3,
            },
        )

    def test_empty_cart_totals_are_zero(self):
        totals = CartTotals.for_lines([])
        self.assertEqual(totals.grand_total, Decimal("0"))
        self.assertEqual(totals.item_count, 0)


class DiscountParsingTests(SimpleTestCase):
    def test_type_inference_threshold(self):
        self.assertEqual(infer_discount_type(Decimal("100")), DiscountType.PERCENTAGE)
        self.assertEqual(infer_discount_type(Decimal("100.01")), DiscountType.FIXED)
        self.assertEqual(infer_discount_type(Decimal("150")), DiscountType.FIXED)
        self.assertEqual(infer_discount_type(Decimal("0.5")), DiscountType.PERCENTAGE)

    def test_unusable_values_parse_to_none(self):
        for raw in (None, "", "   ", "abc", "0", "-5", "NaN", "Infinity"):
            with self.subTest(raw=raw):
                self.assertIsNone(parse_discount_value(raw))

    def test_valid_values_parse(self):
        self.assertEqual(parse_discount_value(" 12.5 "), Decimal("12.5"))
        self.assertEqual(parse_discount_value(7), Decimal("7"))

    def test_present_money_rounds_half_up(self):
        self.assertEqual(present_money(Decimal("2.675")), Decimal("2.68"))
        self.assertEqual(present_money(None), Decimal("0.00"))


class TransactionDiscountAmountTests(SimpleTestCase):
    def test_percentage_applies_to_net_total(self):
        amount = transaction_discount_amount("10", DiscountType.PERCENTAGE, Decimal("31.50"))
        self.assertEqual(amount, Decimal("3.15"))

    def test_percentage_above_hundred_rejected(self):
        with self.assertRaises(DiscountError):
            transaction_discount_amount("101", DiscountType.PERCENTAGE, Decimal("50"))

    def test_fixed_above_net_total_rejected(self):
        with self.assertRaises(DiscountError):
            transaction_discount_amount("60", DiscountType.FIXED, Decimal("50"))

    def test_fixed_equal_to_net_total_allowed(self):
        self.assertEqual(
            transaction_discount_amount("50", "fixed", Decimal("50")),
            Decimal("50"),
        )

    def test_non_positive_rejected(self):
        with self.assertRaises(DiscountError):
            transaction_discount_amount("0", DiscountType.FIXED, Decimal("50"))
