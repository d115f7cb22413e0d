"""Interactive confirmation over the operation's text streams."""

from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Optional, TextIO, Union

from remoteapply.apply.interfaces import ConfirmationResult, RunsClient
from remoteapply.controller.waiters import interrupt_run
from remoteapply.errors import (
    ApplyNeedsUIConfirmationError,
    OperationInterrupted,
    RunDiscardedError,
    general_error,
)
from remoteapply.models import Operation, Run, RunStatus
from remoteapply.util.signals import Signals

logger = logging.getLogger(__name__)

_ANSWER_POLL_SEC: float = 0.1


def _read_line(stream: TextIO, answers: "queue.Queue[Union[str, None, BaseException]]") -> None:
    try:
        line = stream.readline()
    except (OSError, ValueError) as exc:
        answers.put(exc)
        return
    answers.put(line if line else None)


class StreamPrompter:
    """
    Ask for confirmation on `op.ui_out` and read the answer from `op.ui_in`.

    While waiting, the run is re-read every `run_check_interval_sec` so an
    approval or discard made elsewhere (UI, API, policy) ends the prompt.
    """

    def __init__(
        self,
        client: Optional[RunsClient] = None,
        *,
        run_check_interval_sec: float = 3.0,
    ) -> None:
        self._client = client
        self._run_check_interval = run_check_interval_sec

    def confirm(
        self,
        op: Operation,
        query: str,
        description: str,
        required_word: str,
        run: Run,
        signals: Signals,
    ) -> ConfirmationResult:
        if op.ui_in is None or op.ui_out is None:
            raise ApplyNeedsUIConfirmationError()

        op.ui_out.write(f"{query}\n  {description}\n\n  Enter a value: ")
        op.ui_out.flush()

        answers: "queue.Queue[Union[str, None, BaseException]]" = queue.Queue(maxsize=1)
        reader = threading.Thread(target=_read_line, args=(op.ui_in, answers), daemon=True)
        reader.start()

        next_check = time.monotonic() + self._run_check_interval
        while True:
            kind = signals.interrupt()
            if kind is not None:
                if self._client is not None:
                    # A pending run is discarded when it can no longer be canceled.
                    raise interrupt_run(self._client, run.id, kind, discard=True)
                raise OperationInterrupted(kind, details={"run_id": run.id})

            try:
                answer = answers.get(timeout=_ANSWER_POLL_SEC)
            except queue.Empty:
                if self._client is not None and time.monotonic() >= next_check:
                    next_check = time.monotonic() + self._run_check_interval
                    result = self._check_run(run.id)
                    if result is not None:
                        op.ui_out.write("\n")
                        return result
                continue

            if answer is None or isinstance(answer, BaseException):
                raise ApplyNeedsUIConfirmationError(
                    "Input closed before the apply was confirmed.",
                    cause=answer if isinstance(answer, BaseException) else None,
                )

            op.ui_out.write("\n")
            if answer.strip() == required_word:
                return ConfirmationResult.CONFIRMED
            return ConfirmationResult.DECLINED

    def _check_run(self, run_id: str) -> Optional[ConfirmationResult]:
        try:
            current = self._client.read_run(run_id)  # type: ignore[union-attr]
        except Exception as exc:
            raise general_error("Failed to retrieve run", exc) from exc

        if current.actions.is_confirmable:
            return None
        if current.status == RunStatus.DISCARDED.value:
            raise RunDiscardedError(
                "Run was discarded before the apply was confirmed.",
                details={"run_id": run_id},
            )
        logger.info("run %s was approved elsewhere (status=%s)", run_id, current.status)
        return ConfirmationResult.ALREADY_APPROVED
