import unittest

from reconciler import Discrepancy, format_report, reconcile


class ReconcileTests(unittest.TestCase):
    def test_used_and_defined_key_has_no_discrepancy(self) -> None:
        report = reconcile({"greeting.hello"}, {"en-US": {"greeting.hello"}})
        self.assertEqual([Discrepancy("en-US")], report)
        self.assertFalse(report[0].has_issues)

    def test_key_missing_from_translation_file(self) -> None:
        report = reconcile({"greeting.hello"}, {"en-US": set()})
        self.assertEqual(("greeting.hello",), report[0].missing)
        self.assertEqual((), report[0].unused)

    def test_defined_key_never_used(self) -> None:
        report = reconcile({"greeting.hello"}, {"en-US": {"greeting.hello", "unused.key"}})
        self.assertEqual((), report[0].missing)
        self.assertEqual(("unused.key",), report[0].unused)

    def test_results_are_sorted_and_per_language(self) -> None:
        used = {"b", "a", "C"}
        report = reconcile(used, {"en-US": {"z", "y"}, "ko-KR": {"a", "b", "C"}})
        self.assertEqual(["en-US", "ko-KR"], [item.language for item in report])
        self.assertEqual(("C", "a", "b"), report[0].missing)
        self.assertEqual(("y", "z"), report[0].unused)
        self.assertFalse(report[1].has_issues)

    def test_subset_laws_and_inputs_untouched(self) -> None:
        used = {"Add", "Save", "Delete"}
        defined = {"Add", "Cancel", "save"}
        report = reconcile(used, {"en-US": defined})
        self.assertTrue(set(report[0].missing) <= used)
        self.assertTrue(set(report[0].unused) <= defined)
        self.assertEqual({"Add", "Save", "Delete"}, used)
        self.assertEqual({"Add", "Cancel", "save"}, defined)


class FormatReportTests(unittest.TestCase):
    def test_all_ok(self) -> None:
        text = format_report([Discrepancy("en-US"), Discrepancy("ko-KR")])
        self.assertIn("en-US: OK", text)
        self.assertIn("ko-KR: OK", text)
        self.assertTrue(text.endswith("OK: No missing or unused localization keys."))

    def test_lists_missing_and_unused(self) -> None:
        text = format_report(
            [
                Discrepancy("en-US", missing=("Add", "Save"), unused=("Old",)),
                Discrepancy("ko-KR"),
            ]
        )
        lines = text.splitlines()
        self.assertIn("MISSING in en-US: 2", lines)
        self.assertIn("  Add", lines)
        self.assertIn("  Save", lines)
        self.assertIn("UNUSED in en-US: 1", lines)
        self.assertIn("  Old", lines)
        self.assertIn("ko-KR: OK", lines)
        self.assertEqual("Discrepancies found in 1 language(s).", lines[-1])
