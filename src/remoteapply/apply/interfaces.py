"""Collaborator contracts consumed by the apply pipeline."""

from __future__ import annotations

from enum import Enum
from typing import BinaryIO, Callable, Optional, Protocol

from remoteapply.models import LogRecord, Operation, Run, TaskStage, Workspace
from remoteapply.util.signals import Signals


class ConfirmationResult(str, Enum):
    """Outcome of the confirmation step. Failures are raised, not returned."""

    CONFIRMED = "confirmed"
    DECLINED = "declined"
    ALREADY_APPROVED = "already_approved"
    NOT_REQUIRED = "not_required"


class RunsClient(Protocol):
    """Remote calls on runs, task stages and apply logs."""

    def read_run(self, run_id: str, *, include_workspace: bool = False) -> Run: ...

    def apply_run(self, run_id: str) -> None: ...

    def discard_run(self, run_id: str) -> None: ...

    def cancel_run(self, run_id: str) -> None: ...

    def list_task_stages(self, run_id: str) -> list[TaskStage]: ...

    def read_task_stage(self, stage_id: str) -> TaskStage: ...

    def open_apply_logs(self, apply_id: str) -> BinaryIO: ...


class PlanTrigger(Protocol):
    """Creates a new run and carries it through its plan phase."""

    def __call__(self, op: Operation, workspace: Workspace, signals: Signals) -> Run: ...


class StageWaiter(Protocol):
    def wait_on_stage(self, run: Run, stage_id: str, signals: Signals, label: str) -> None: ...


class RunWaiter(Protocol):
    def poll_run_to_terminal(
        self,
        run: Run,
        signals: Signals,
        on_status: Optional[Callable[[Run], None]] = None,
    ) -> Run: ...


class Prompter(Protocol):
    def confirm(
        self,
        op: Operation,
        query: str,
        description: str,
        required_word: str,
        run: Run,
        signals: Signals,
    ) -> ConfirmationResult: ...


class LogRenderer(Protocol):
    def render_log(self, record: LogRecord) -> None: ...


class Output(Protocol):
    """Append-only user output channel."""

    def emit_raw_line(self, text: str) -> None: ...

    def emit_header(self, text: str) -> None: ...
