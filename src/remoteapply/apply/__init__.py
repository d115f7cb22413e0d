"""Apply pipeline stages for remoteapply."""

from __future__ import annotations

from .confirmation import (
    CONFIRM_WORD,
    ConfirmationGate,
    ConfirmationPrompt,
    build_confirmation_prompt,
    trigger_apply,
)
from .interfaces import (
    ConfirmationResult,
    LogRenderer,
    Output,
    PlanTrigger,
    Prompter,
    RunsClient,
    RunWaiter,
    StageWaiter,
)
from .logs import BANNER_LINES_TO_SKIP, LogStreamRenderer, iter_log_lines
from .preflight import check_preflight
from .resolver import PlanSourceResolver, Resolution
from .saved_plan import classify_saved_plan_status, unusable_saved_plan_diagnostics
from .stages import PRE_APPLY_LABEL, RunPoller, TaskStageGate

__all__ = [
    "ConfirmationResult",
    "RunsClient",
    "PlanTrigger",
    "StageWaiter",
    "RunWaiter",
    "Prompter",
    "LogRenderer",
    "Output",
    "check_preflight",
    "classify_saved_plan_status",
    "unusable_saved_plan_diagnostics",
    "PlanSourceResolver",
    "Resolution",
    "CONFIRM_WORD",
    "ConfirmationPrompt",
    "ConfirmationGate",
    "build_confirmation_prompt",
    "trigger_apply",
    "PRE_APPLY_LABEL",
    "TaskStageGate",
    "RunPoller",
    "BANNER_LINES_TO_SKIP",
    "LogStreamRenderer",
    "iter_log_lines",
]
