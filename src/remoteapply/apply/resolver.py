"""Choose between resuming a saved plan and planning a fresh run."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from remoteapply.config import BackendConfig
from remoteapply.errors import ResolutionError, contextualize_error, general_error
from remoteapply.models import (
    ApplyOutcome,
    Diagnostics,
    Operation,
    Run,
    RunStatus,
    SavedPlanBookmark,
    Workspace,
)
from remoteapply.util.signals import Signals
from remoteapply.util.urls import run_url

from .interfaces import Output, PlanTrigger, RunsClient
from .saved_plan import unusable_saved_plan_diagnostics

logger = logging.getLogger(__name__)

APPLY_DEFAULT_HEADER: str = (
    "Running apply in the remote backend. Output will stream here. Pressing Ctrl-C\n"
    "will cancel the remote apply if it's still pending. If the apply started it\n"
    "will stop streaming the logs, but will not stop the apply running remotely.\n"
    "\n"
    "Preparing the remote apply..."
)

APPLY_SAVED_HEADER: str = (
    "Running apply in the remote backend. Output will stream here. Pressing Ctrl-C\n"
    "will stop streaming the logs, but will not stop the apply running remotely.\n"
    "\n"
    "Preparing the remote apply..."
)

RUN_HEADER: str = "To view this run in a browser, visit:\n{url}"


@dataclass(slots=True)
class Resolution:
    """
    Where the run to apply came from.

    `finished` is set when there is nothing left to do; the pipeline then
    returns `run` with that outcome.
    """

    run: Run
    from_saved_plan: bool
    must_confirm: bool = False
    finished: Optional[ApplyOutcome] = None


class PlanSourceResolver:
    """Resolve the run to apply: saved plan bookmark or fresh plan."""

    def __init__(
        self,
        config: BackendConfig,
        client: RunsClient,
        plan_trigger: PlanTrigger,
        output: Optional[Output] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._plan_trigger = plan_trigger
        self._output = output

    def resolve(self, op: Operation, workspace: Workspace, signals: Signals) -> Resolution:
        bookmark = op.bookmark
        if bookmark is not None:
            logger.debug("loading saved plan run %s for apply", bookmark.run_id)
            return self._resolve_saved(op, workspace, bookmark, signals)

        logger.debug("running new plan for apply in workspace %s", workspace.name)
        return self._resolve_fresh(op, workspace, signals)

    # ----------------------------
    # Saved plan
    # ----------------------------
    def _resolve_saved(
        self,
        op: Operation,
        workspace: Workspace,
        bookmark: SavedPlanBookmark,
        signals: Signals,
    ) -> Resolution:
        # Hostname first: a more actionable error than a 404 later.
        if bookmark.hostname != self._config.hostname:
            raise ResolutionError(
                Diagnostics().error(
                    "Saved plan is for a different hostname",
                    f"The given saved plan refers to a run on {bookmark.hostname}, but the "
                    f"currently configured remote backend instance is {self._config.hostname}.",
                ),
                details={"hostname": bookmark.hostname, "run_id": bookmark.run_id},
            )

        signals.raise_if_interrupted()
        try:
            run = self._client.read_run(bookmark.run_id, include_workspace=True)
        except Exception as exc:
            raise general_error("Failed to retrieve saved plan run", exc) from exc

        run_workspace_id = run.workspace.id if run.workspace is not None else run.workspace_id
        if run_workspace_id != workspace.id:
            org = run.workspace.organization if run.workspace else self._config.organization
            ws_name = run.workspace.name if run.workspace else op.workspace
            url = run_url(self._config.hostname, org, ws_name, run.id)
            err = ResolutionError(
                Diagnostics().error(
                    "Saved plan is for a different workspace",
                    "The given saved plan does not refer to a run in the current workspace "
                    f"({workspace.organization}/{workspace.name}), so it cannot currently be "
                    f"applied. For more details, view this run in a browser at:\n{url}",
                ),
                details={"run_id": run.id, "workspace_id": run_workspace_id},
            )
            err.run = run
            raise err

        if not run.actions.is_confirmable:
            url = run_url(self._config.hostname, self._config.organization, op.workspace, run.id)
            err = ResolutionError(
                unusable_saved_plan_diagnostics(run.status, url),
                details={"run_id": run.id, "status": str(run.status)},
            )
            err.run = run
            raise err

        # No plan phase ran here, so print the run header ourselves.
        if self._output is not None:
            ws_name = run.workspace.name if run.workspace else op.workspace
            self._output.emit_header(APPLY_SAVED_HEADER)
            self._output.emit_header(
                RUN_HEADER.format(
                    url=run_url(self._config.hostname, self._config.organization, ws_name, run.id)
                )
            )

        logger.info("resuming saved plan run %s", run.id)
        return Resolution(run=run, from_saved_plan=True)

    # ----------------------------
    # Fresh plan
    # ----------------------------
    def _resolve_fresh(self, op: Operation, workspace: Workspace, signals: Signals) -> Resolution:
        if self._output is not None:
            self._output.emit_header(APPLY_DEFAULT_HEADER)

        try:
            run = self._plan_trigger(op, workspace, signals)
        except Exception as exc:
            raise contextualize_error("Failed to plan run", exc) from exc

        logger.info("started new plan run %s (status=%s)", run.id, run.status)

        finished = _finished_after_plan(run)
        if finished is not None:
            logger.info("run %s needs no apply: %s", run.id, finished.value)
            return Resolution(run=run, from_saved_plan=False, finished=finished)

        # The plan result may be stale; decisions below use a fresh snapshot.
        signals.raise_if_interrupted()
        try:
            run = self._client.read_run(run.id)
        except Exception as exc:
            raise general_error("Failed to retrieve run", exc) from exc

        if not op.auto_approve and not run.actions.is_confirmable:
            logger.info("run %s cannot be confirmed (status=%s)", run.id, run.status)
            return Resolution(
                run=run,
                from_saved_plan=False,
                finished=ApplyOutcome.NOT_CONFIRMABLE,
            )

        must_confirm = op.ui_in is not None and op.ui_out is not None and not op.auto_approve
        return Resolution(run=run, from_saved_plan=False, must_confirm=must_confirm)


def _finished_after_plan(run: Run) -> Optional[ApplyOutcome]:
    if run.status == RunStatus.CANCELED.value:
        return ApplyOutcome.PLAN_CANCELED
    if run.status == RunStatus.ERRORED.value:
        return ApplyOutcome.PLAN_ERRORED
    if not run.has_changes:
        return ApplyOutcome.NO_CHANGES
    return None
