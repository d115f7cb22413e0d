import unittest

from remoteapply.models import Diagnostic, Diagnostics, Severity


class TestDiagnostics(unittest.TestCase):
    def test_empty_has_no_errors(self) -> None:
        diags = Diagnostics()
        self.assertFalse(diags.has_errors())
        self.assertFalse(diags)
        self.assertEqual(len(diags), 0)

    def test_warnings_alone_are_not_failure(self) -> None:
        diags = Diagnostics().warning("careful")
        self.assertFalse(diags.has_errors())
        self.assertEqual([d.summary for d in diags.warnings()], ["careful"])

    def test_errors_keep_order(self) -> None:
        diags = Diagnostics().error("a", "detail a").warning("w").error("b")
        self.assertTrue(diags.has_errors())
        self.assertEqual([d.summary for d in diags.errors()], ["a", "b"])
        self.assertEqual(diags.errors()[0].detail, "detail a")

    def test_extend(self) -> None:
        diags = Diagnostics().error("a")
        diags.extend(Diagnostics().append(Diagnostic(Severity.WARNING, "w")))
        self.assertEqual(len(diags), 2)


if __name__ == "__main__":
    unittest.main()
