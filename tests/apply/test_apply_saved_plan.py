import unittest

from remoteapply.apply.saved_plan import (
    classify_saved_plan_status,
    unusable_saved_plan_diagnostics,
)


class TestSavedPlanStatus(unittest.TestCase):
    def test_known_statuses(self) -> None:
        cases = {
            "applied": "Saved plan is already applied",
            "applying": "Saved plan is already confirmed",
            "apply_queued": "Saved plan is already confirmed",
            "confirmed": "Saved plan is already confirmed",
            "canceled": "Saved plan is canceled",
            "discarded": "Saved plan is discarded",
            "errored": "Saved plan is errored",
            "planned_and_finished": "Saved plan has no changes",
            "policy_override": "Saved plan requires policy override",
        }
        for status, summary in cases.items():
            with self.subTest(status=status):
                self.assertEqual(classify_saved_plan_status(status)[0], summary)

    def test_unmapped_status_uses_generic_message(self) -> None:
        self.assertEqual(classify_saved_plan_status("planning")[0], "Saved plan cannot be applied")

    def test_diagnostics_carry_url(self) -> None:
        url = "https://app.example.io/app/acme/prod/runs/run-1"
        diags = unusable_saved_plan_diagnostics("policy_override", url)
        self.assertTrue(diags.has_errors())
        self.assertTrue(diags.errors()[0].detail.endswith(url))


if __name__ == "__main__":
    unittest.main()
