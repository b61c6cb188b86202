# pos/tests/test_numbering.py

from datetime import date
from unittest import mock

from django.db import IntegrityError
from django.test import TestCase, override_settings

from pos.models import DailyTransactionCounter
from pos.services.exceptions import TransactionNumberError
from pos.services.numbering import DjangoTransactionNumbering, issue_transaction_number


class TransactionNumberingTests(TestCase):
    """
    GUARANTEES:
    - numbers are YYYYMMDD + 4-digit sequence, unique per day
    - the sequence restarts every business day
    - collisions are retried a bounded number of times
    """

    def test_sequence_format_and_increment(self):
        day = date(2026, 10, 16)

        self.assertEqual(issue_transaction_number(today=day), "202610160001")
        self.assertEqual(issue_transaction_number(today=day), "202610160002")
        self.assertEqual(DailyTransactionCounter.objects.get(business_date=day).last_sequence, 2)

    def test_sequence_restarts_each_day(self):
        issue_transaction_number(today=date(2026, 10, 16))

        self.assertEqual(issue_transaction_number(today=date(2026, 10, 17)), "202610170001")

    def test_exhausted_day_raises(self):
        day = date(2026, 10, 16)
        DailyTransactionCounter.objects.create(business_date=day, last_sequence=9999)

        with self.assertRaises(TransactionNumberError):
            issue_transaction_number(today=day)

    def test_collisions_retried_then_give_up(self):
        with mock.patch(
            "pos.services.numbering.DailyTransactionCounter.objects.select_for_update",
            side_effect=IntegrityError("duplicate business_date"),
        ) as locked:
            with self.assertRaises(TransactionNumberError):
                issue_transaction_number(today=date(2026, 10, 16), max_retries=4)

        self.assertEqual(locked.call_count, 4)

    @override_settings(POS={"TRANSACTION_NUMBER_MAX_RETRIES": 2})
    def test_retry_budget_from_settings(self):
        with mock.patch(
            "pos.services.numbering.DailyTransactionCounter.objects.select_for_update",
            side_effect=IntegrityError("duplicate business_date"),
        ) as locked:
            with self.assertRaises(TransactionNumberError):
                DjangoTransactionNumbering().issue_number()

        self.assertEqual(locked.call_count, 2)

    def test_numbering_collaborator_uses_today(self):
        number = DjangoTransactionNumbering().issue_number()

        self.assertEqual(len(number), 12)
        self.assertTrue(number.endswith("0001"))
