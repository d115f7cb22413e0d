"""Polling implementations of the run and task stage waiters."""

from __future__ import annotations

import itertools
import logging
import time
from datetime import timedelta
from typing import Callable, Optional

from remoteapply.apply.interfaces import Output, RunsClient
from remoteapply.errors import (
    ApiError,
    Interrupt,
    OperationInterrupted,
    RemoteApplyError,
    TaskStageError,
    general_error,
)
from remoteapply.models import Run, TaskStage, TaskStageStatus, is_terminal
from remoteapply.models.run import WAITING_STATUSES
from remoteapply.util.backoff import BACKOFF_MAX_SEC, BACKOFF_MIN_SEC, backoff
from remoteapply.util.signals import Signals
from remoteapply.util.time import format_elapsed

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL_SEC: float = 30.0

_STAGE_DONE: frozenset[str] = frozenset(
    {TaskStageStatus.PASSED.value, TaskStageStatus.OVERRIDDEN.value}
)
_STAGE_FATAL: frozenset[str] = frozenset(
    {
        TaskStageStatus.ERRORED.value,
        TaskStageStatus.CANCELED.value,
        TaskStageStatus.UNREACHABLE.value,
    }
)


def cancel_run_if_possible(client: RunsClient, run_id: str, *, discard: bool = False) -> bool:
    """
    Cancel the remote run when it still allows it.

    With `discard=True`, a run that cannot be canceled but is still waiting
    for confirmation is discarded instead. Returns True if either was done.
    """
    try:
        current = client.read_run(run_id)
        if current.actions.is_cancelable:
            client.cancel_run(run_id)
            logger.info("canceled remote run %s", run_id)
            return True
        if discard and current.actions.is_discardable:
            client.discard_run(run_id)
            logger.info("discarded remote run %s", run_id)
            return True
    except Exception as exc:
        raise general_error("Failed to cancel run", exc) from exc
    return False


def interrupt_run(
    client: RunsClient,
    run_id: str,
    kind: Interrupt,
    *,
    discard: bool = False,
) -> OperationInterrupted:
    """
    Build the interrupt for `kind`, canceling the remote run on a hard cancel.

    A failed remote cancel is logged and kept as the interrupt's cause; the
    caller still sees an OperationInterrupted.
    """
    cause: Optional[BaseException] = None
    if kind is Interrupt.CANCEL:
        try:
            cancel_run_if_possible(client, run_id, discard=discard)
        except RemoteApplyError as exc:
            logger.warning("could not cancel remote run %s: %s", run_id, exc)
            cause = exc
    return OperationInterrupted(kind, details={"run_id": run_id}, cause=cause)


class ControllerRunWaiter:
    """Poll a run until it reaches a terminal status."""

    def __init__(
        self,
        client: RunsClient,
        output: Optional[Output] = None,
        *,
        min_delay_sec: float = BACKOFF_MIN_SEC,
        max_delay_sec: float = BACKOFF_MAX_SEC,
        progress_interval_sec: float = PROGRESS_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._output = output
        self._min_delay = min_delay_sec
        self._max_delay = max_delay_sec
        self._progress_interval = progress_interval_sec
        self._clock = clock

    def poll_run_to_terminal(
        self,
        run: Run,
        signals: Signals,
        on_status: Optional[Callable[[Run], None]] = None,
    ) -> Run:
        started = self._clock()
        last_progress: Optional[float] = None
        current = run

        for attempt in itertools.count():
            kind = signals.wait(backoff(self._min_delay, self._max_delay, attempt))
            if kind is not None:
                raise interrupt_run(self._client, current.id, kind)

            try:
                current = self._client.read_run(current.id)
            except Exception as exc:
                raise general_error("Failed to retrieve run", exc) from exc

            logger.debug("poll %d: run %s is %s", attempt, current.id, current.status)
            if on_status is not None:
                on_status(current)
            if is_terminal(current.status):
                return current

            now = self._clock()
            if current.status in WAITING_STATUSES and (
                last_progress is None or now - last_progress >= self._progress_interval
            ):
                last_progress = now
                self._report_waiting(now - started, first=attempt == 0)

        raise ApiError("Unexpected poll loop termination")

    def _report_waiting(self, elapsed_sec: float, *, first: bool) -> None:
        if self._output is None:
            return
        suffix = "" if first else f" ({format_elapsed(timedelta(seconds=elapsed_sec))} elapsed)"
        self._output.emit_raw_line(f"Waiting for the apply to start...{suffix}")


class ControllerStageWaiter:
    """Poll a task stage until it resolves."""

    def __init__(
        self,
        client: RunsClient,
        output: Optional[Output] = None,
        *,
        min_delay_sec: float = BACKOFF_MIN_SEC,
        max_delay_sec: float = BACKOFF_MAX_SEC,
    ) -> None:
        self._client = client
        self._output = output
        self._min_delay = min_delay_sec
        self._max_delay = max_delay_sec

    def wait_on_stage(self, run: Run, stage_id: str, signals: Signals, label: str) -> None:
        for attempt in itertools.count():
            kind = signals.interrupt()
            if kind is not None:
                raise interrupt_run(self._client, run.id, kind)
            try:
                stage = self._client.read_task_stage(stage_id)
            except Exception as exc:
                raise general_error("Failed to retrieve task stage", exc) from exc

            if self._resolved(stage, label):
                return

            kind = signals.wait(backoff(self._min_delay, self._max_delay, attempt))
            if kind is not None:
                raise interrupt_run(self._client, run.id, kind)

    def _resolved(self, stage: TaskStage, label: str) -> bool:
        status = str(stage.status)
        if status in _STAGE_DONE:
            self._summarize(stage, label)
            return True

        if status in _STAGE_FATAL:
            raise TaskStageError(
                f"{label} {status}",
                details={"stage_id": stage.id, "status": status},
            )

        if status != TaskStageStatus.FAILED.value:
            return False

        failed = [r for r in stage.task_results if r.status == TaskStageStatus.FAILED.value]
        mandatory = [r.name for r in failed if r.is_mandatory]
        if mandatory:
            raise TaskStageError(
                f"{label} failed",
                details={"stage_id": stage.id, "mandatory_failed": mandatory},
            )

        for result in failed:
            logger.warning("advisory task %s failed: %s", result.name, result.message)
        self._summarize(stage, label)
        return True

    def _summarize(self, stage: TaskStage, label: str) -> None:
        if self._output is None:
            return
        passed = sum(1 for r in stage.task_results if r.status == TaskStageStatus.PASSED.value)
        failed = sum(1 for r in stage.task_results if r.status == TaskStageStatus.FAILED.value)
        self._output.emit_raw_line(f"{label}: {passed} passed, {failed} failed")
