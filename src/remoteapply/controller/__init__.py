"""Internal controller exports for remoteapply."""

from __future__ import annotations

from .runs_controller import ApplyLogStream, RunsController
from .waiters import (
    ControllerRunWaiter,
    ControllerStageWaiter,
    cancel_run_if_possible,
    interrupt_run,
)

__all__ = [
    "RunsController",
    "ApplyLogStream",
    "ControllerRunWaiter",
    "ControllerStageWaiter",
    "cancel_run_if_possible",
    "interrupt_run",
]
