"""Pre-apply task stage gate and run polling."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from remoteapply.errors import contextualize_error, general_error
from remoteapply.models import Run, StageKind, TaskStage
from remoteapply.util.signals import Signals

from .interfaces import RunsClient, RunWaiter, StageWaiter

logger = logging.getLogger(__name__)

PRE_APPLY_LABEL: str = "Pre-apply Tasks"


class TaskStageGate:
    """
    Wait on the run's pre-apply task stage, if it has one.

    Stages are computed once by the remote service, so they are fetched
    once per run and cached.
    """

    def __init__(self, client: RunsClient, waiter: StageWaiter) -> None:
        self._client = client
        self._waiter = waiter
        self._cache: dict[str, dict[str, TaskStage]] = {}

    def stages_for(self, run_id: str) -> dict[str, TaskStage]:
        cached = self._cache.get(run_id)
        if cached is not None:
            return cached

        try:
            stages = self._client.list_task_stages(run_id)
        except Exception as exc:
            raise general_error("Failed to retrieve task stages", exc) from exc

        by_kind = {str(getattr(s.stage, "value", s.stage)): s for s in stages}
        logger.debug("run %s has task stages: %s", run_id, sorted(by_kind))
        self._cache[run_id] = by_kind
        return by_kind

    def wait_pre_apply(self, run: Run, signals: Signals) -> Optional[TaskStage]:
        stage = self.stages_for(run.id).get(StageKind.PRE_APPLY.value)
        if stage is None:
            return None

        logger.info("waiting on pre-apply task stage %s for run %s", stage.id, run.id)
        try:
            self._waiter.wait_on_stage(run, stage.id, signals, PRE_APPLY_LABEL)
        except Exception as exc:
            raise contextualize_error(f"Failed to wait on {PRE_APPLY_LABEL}", exc) from exc
        return stage


class RunPoller:
    """Block until the run is terminal, reporting every status change."""

    def __init__(
        self,
        waiter: RunWaiter,
        on_transition: Optional[Callable[[Run, str], None]] = None,
    ) -> None:
        self._waiter = waiter
        self._on_transition = on_transition

    def poll(self, run: Run, signals: Signals) -> Run:
        last_status = [str(run.status)]

        def on_status(current: Run) -> None:
            if current.status == last_status[0]:
                return
            logger.info("run %s: %s -> %s", current.id, last_status[0], current.status)
            if self._on_transition is not None:
                self._on_transition(current, last_status[0])
            last_status[0] = str(current.status)

        # Signals are checked by the waiter, which cancels the remote run on CANCEL.
        try:
            final = self._waiter.poll_run_to_terminal(run, signals, on_status)
        except Exception as exc:
            raise contextualize_error("Failed to retrieve run", exc) from exc

        on_status(final)
        logger.info("run %s finished with status %s", final.id, final.status)
        return final
