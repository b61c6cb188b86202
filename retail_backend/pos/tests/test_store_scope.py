# pos/tests/test_store_scope.py

from django.test import SimpleTestCase

from pos.services.store_scope import filter_lines_by_store

from .fakes import STORE_A, STORE_B, make_line


class StoreScopeFilterTests(SimpleTestCase):
    def test_switch_removes_exactly_other_store_lines(self):
        a1 = make_line("p1", store_id=STORE_A)
        b1 = make_line("p2", store_id=STORE_B)
        a2 = make_line("p3", store_id=STORE_A)

        result = filter_lines_by_store([a1, b1, a2], STORE_B)

        self.assertEqual(result.kept, [b1])
        self.assertEqual(result.removed, [a1, a2])
        self.assertEqual(result.removed_count, 2)

    def test_nothing_removed_when_all_lines_match(self):
        result = filter_lines_by_store([make_line("p1", store_id=STORE_B)], STORE_B)
        self.assertEqual(result.removed_count, 0)

    def test_no_store_drops_everything(self):
        lines = [make_line("p1", store_id=STORE_A), make_line("p2", store_id=STORE_B)]
        result = filter_lines_by_store(lines, None)

        self.assertEqual(result.kept, [])
        self.assertEqual(result.removed_count, 2)

    def test_store_ids_compared_as_strings(self):
        result = filter_lines_by_store([make_line("p1", store_id="7")], 7)
        self.assertEqual(result.removed_count, 0)
