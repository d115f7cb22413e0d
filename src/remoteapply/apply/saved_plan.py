"""Explanations for saved plans whose run can no longer be confirmed."""

from __future__ import annotations

from remoteapply.models import Diagnostics, RunStatus

_STATUS_MESSAGES: dict[str, tuple[str, str]] = {
    RunStatus.APPLIED.value: (
        "Saved plan is already applied",
        "The given plan file was already successfully applied, and cannot be applied again.",
    ),
    RunStatus.APPLYING.value: (
        "Saved plan is already confirmed",
        "The given plan file is already being applied, and cannot be applied again.",
    ),
    RunStatus.CANCELED.value: (
        "Saved plan is canceled",
        "The given plan file can no longer be applied because the run was canceled "
        "via the remote UI or API.",
    ),
    RunStatus.DISCARDED.value: (
        "Saved plan is discarded",
        "The given plan file can no longer be applied; either another run was applied "
        "first, or a user discarded it via the remote UI or API.",
    ),
    RunStatus.ERRORED.value: (
        "Saved plan is errored",
        "The given plan file refers to a plan that had errors and did not complete "
        "successfully. It cannot be applied.",
    ),
    # A saved plan is never plan-only, so planned_and_finished means no changes.
    RunStatus.PLANNED_AND_FINISHED.value: (
        "Saved plan has no changes",
        "The given plan file contains no changes, so it cannot be applied.",
    ),
    RunStatus.POLICY_OVERRIDE.value: (
        "Saved plan requires policy override",
        "The given plan file has soft policy failures, and cannot be applied until a "
        "user with appropriate permissions overrides the policy check.",
    ),
}
_STATUS_MESSAGES[RunStatus.APPLY_QUEUED.value] = _STATUS_MESSAGES[RunStatus.APPLYING.value]
_STATUS_MESSAGES[RunStatus.CONFIRMED.value] = _STATUS_MESSAGES[RunStatus.APPLYING.value]

_DEFAULT_MESSAGE: tuple[str, str] = (
    "Saved plan cannot be applied",
    "The remote backend cannot apply the given plan file. This may mean the plan and "
    "checks have not yet completed, or may indicate another problem.",
)


def classify_saved_plan_status(status: str) -> tuple[str, str]:
    """Return (summary, reason) explaining why a run in `status` cannot be applied."""
    return _STATUS_MESSAGES.get(str(getattr(status, "value", status)), _DEFAULT_MESSAGE)


def unusable_saved_plan_diagnostics(status: str, url: str) -> Diagnostics:
    summary, reason = classify_saved_plan_status(status)
    return Diagnostics().error(
        summary,
        f"{reason} For more details, view this run in a browser at:\n{url}",
    )
