"""Result model for the apply operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .diagnostics import Diagnostics
from .run import Run


class ApplyOutcome(str, Enum):
    """How an apply operation ended without raising."""

    COMPLETED = "completed"
    NO_CHANGES = "no_changes"
    PLAN_CANCELED = "plan_canceled"
    PLAN_ERRORED = "plan_errored"
    NOT_CONFIRMABLE = "not_confirmable"
    DECLINED = "declined"


@dataclass(slots=True)
class ApplyResult:
    """
    Aggregate result for RemoteApplyBackend.apply.

    Notes:
        - COMPLETED means the run reached a terminal status; inspect
          `run.status` to see whether the apply itself succeeded.
        - `approve_calls` counts apply-approval requests issued by this
          operation (never more than one).
    """

    outcome: ApplyOutcome
    run: Optional[Run]
    approve_calls: int = 0
    diagnostics: Diagnostics = field(default_factory=Diagnostics)
