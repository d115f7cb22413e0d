"""remoteapply public API."""

from __future__ import annotations

from remoteapply.apply import ConfirmationResult
from remoteapply.backend import RemoteApplyBackend
from remoteapply.config import BackendConfig
from remoteapply.controller import RunsController
from remoteapply.errors import (
    ApiError,
    ApplyNeedsUIConfirmationError,
    AuthError,
    ConflictError,
    DiagnosticsError,
    Interrupt,
    NetworkError,
    NotFoundError,
    OperationInterrupted,
    PermissionDeniedError,
    PreconditionError,
    RateLimitError,
    RemoteApplyError,
    RemoteCallError,
    ResolutionError,
    RunDiscardedError,
    TaskStageError,
)
from remoteapply.models import (
    ApplyOutcome,
    ApplyResult,
    Diagnostic,
    Diagnostics,
    LogRecord,
    Operation,
    PlanFile,
    PlanMode,
    Run,
    RunStatus,
    SavedPlanBookmark,
    Severity,
    Workspace,
    WorkspacePermissions,
)
from remoteapply.ui import PlainLogRenderer, StreamOutput, StreamPrompter
from remoteapply.util import Signals

__all__ = [
    # High-level
    "RemoteApplyBackend",
    "BackendConfig",
    "RunsController",
    "Signals",
    "ConfirmationResult",
    # UI
    "StreamOutput",
    "StreamPrompter",
    "PlainLogRenderer",
    # Models
    "Operation",
    "PlanFile",
    "PlanMode",
    "SavedPlanBookmark",
    "Workspace",
    "WorkspacePermissions",
    "Run",
    "RunStatus",
    "LogRecord",
    "ApplyOutcome",
    "ApplyResult",
    "Severity",
    "Diagnostic",
    "Diagnostics",
    # Errors
    "RemoteApplyError",
    "DiagnosticsError",
    "PreconditionError",
    "ResolutionError",
    "ApplyNeedsUIConfirmationError",
    "RunDiscardedError",
    "TaskStageError",
    "Interrupt",
    "OperationInterrupted",
    "RemoteCallError",
    "AuthError",
    "PermissionDeniedError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
]
