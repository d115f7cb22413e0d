"""Public model exports for remoteapply."""

from __future__ import annotations

from .diagnostics import Diagnostic, Diagnostics, Severity
from .log_record import LogRecord, parse_log_line
from .operation import Operation, PlanFile, PlanMode, SavedPlanBookmark
from .results import ApplyOutcome, ApplyResult
from .run import (
    TERMINAL_STATUSES,
    Run,
    RunActions,
    RunStatus,
    StageKind,
    TaskResult,
    TaskStage,
    TaskStageStatus,
    Workspace,
    WorkspacePermissions,
    is_terminal,
)

__all__ = [
    "Severity",
    "Diagnostic",
    "Diagnostics",
    "LogRecord",
    "parse_log_line",
    "PlanMode",
    "PlanFile",
    "SavedPlanBookmark",
    "Operation",
    "ApplyOutcome",
    "ApplyResult",
    "RunStatus",
    "TERMINAL_STATUSES",
    "is_terminal",
    "Run",
    "RunActions",
    "Workspace",
    "WorkspacePermissions",
    "StageKind",
    "TaskStageStatus",
    "TaskResult",
    "TaskStage",
]
