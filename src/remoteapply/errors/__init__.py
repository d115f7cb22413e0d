"""Public error exports for remoteapply."""

from __future__ import annotations

from .exceptions import (
    ApiError,
    ApplyNeedsUIConfirmationError,
    AuthError,
    ConflictError,
    DiagnosticsError,
    HttpErrorInfo,
    Interrupt,
    InvalidArgumentError,
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
    contextualize_error,
    general_error,
    map_http_error,
)

__all__ = [
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
    "InvalidArgumentError",
    "NotFoundError",
    "ConflictError",
    "RateLimitError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "general_error",
    "contextualize_error",
    "map_http_error",
]
