"""Exception hierarchy and HTTP error mapping for remoteapply."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from remoteapply.models.diagnostics import Diagnostics


class RemoteApplyError(Exception):
    """
    Base exception for remoteapply.

    Attributes:
        details: Optional structured information (e.g., HTTP status, run id).
        cause: Optional original exception that triggered this error.
        run: Run snapshot the operation held when it failed, if any.
    """

    run: Any = None

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause


class DiagnosticsError(RemoteApplyError):
    """Raised when a Diagnostics aggregate contains at least one error."""

    def __init__(
        self,
        diagnostics: "Diagnostics",
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        errors = diagnostics.errors()
        message = errors[0].summary if errors else "Operation failed"
        super().__init__(message, details=details)
        self.diagnostics = diagnostics


class PreconditionError(DiagnosticsError):
    """Raised when preflight checks fail before any remote call."""


class ResolutionError(DiagnosticsError):
    """Raised when a saved plan cannot be resolved or applied here."""


class ApplyNeedsUIConfirmationError(RemoteApplyError):
    """Raised when the apply must be confirmed but interactive input is unavailable."""

    def __init__(self, message: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(
            message
            or "Cannot confirm apply due to -input=false. Please handle run "
            "confirmation in the UI.",
            **kwargs,
        )


class RunDiscardedError(RemoteApplyError):
    """Raised when the run was discarded while waiting for confirmation."""


class TaskStageError(RemoteApplyError):
    """Raised when a pre-apply task stage blocks the apply."""


class Interrupt(str, Enum):
    """Which cancellation signal ended a blocking wait."""

    STOP = "stop"
    CANCEL = "cancel"


class OperationInterrupted(RemoteApplyError):
    """
    Raised by blocking steps when a cancellation signal fires.

    `kind` tells a soft stop (local wait abandoned, remote run untouched)
    apart from a hard cancel (remote run cancellation requested).
    """

    def __init__(self, kind: Interrupt, message: Optional[str] = None, **kwargs: Any) -> None:
        if message is None:
            message = "Operation stopped" if kind is Interrupt.STOP else "Operation canceled"
        super().__init__(message, **kwargs)
        self.kind = kind


class RemoteCallError(RemoteApplyError):
    """Base for failures talking to the remote run service."""


class AuthError(RemoteCallError):
    """Raised when the API token is missing or rejected (HTTP 401)."""


class PermissionDeniedError(RemoteCallError):
    """Raised when access is denied (HTTP 403)."""


class InvalidArgumentError(RemoteCallError):
    """Raised when request arguments are invalid (HTTP 400/422)."""


class NotFoundError(RemoteCallError):
    """Raised when a remote resource is not found (HTTP 404)."""


class ConflictError(RemoteCallError):
    """Raised when the run is not in a state that allows the action (HTTP 409)."""


class RateLimitError(RemoteCallError):
    """Raised when rate-limited (HTTP 429)."""


class NetworkError(RemoteCallError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(RemoteCallError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to remoteapply exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    details: dict[str, Any] | None = None


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> RemoteCallError:
    """
    Map an HTTP error to a remoteapply exception.

    Policy:
        - 400/422 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> PermissionDeniedError
        - 404 -> NotFoundError
        - 409 -> ConflictError
        - 429 -> RateLimitError
        - otherwise -> ApiError
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"

    if info.status_code in (400, 422):
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        return PermissionDeniedError(message, details=details, cause=cause)
    if info.status_code == 404:
        return NotFoundError(message, details=details, cause=cause)
    if info.status_code == 409:
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)


def general_error(summary: str, exc: BaseException) -> RemoteApplyError:
    """
    Wrap a remote failure with a short human-readable summary.

    Interrupts are returned unchanged so callers can still tell a user
    cancellation apart from a failed remote call.
    """
    if isinstance(exc, OperationInterrupted):
        return exc

    details: dict[str, Any] = {"summary": summary}
    if isinstance(exc, RemoteApplyError):
        details.update(exc.details)
    return RemoteCallError(f"{summary}: {exc}", details=details, cause=exc)


def contextualize_error(summary: str, exc: BaseException) -> RemoteApplyError:
    """Keep remoteapply errors as they are; wrap anything else via general_error."""
    if isinstance(exc, RemoteApplyError):
        return exc
    return general_error(summary, exc)
