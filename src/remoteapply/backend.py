"""RemoteApplyBackend: orchestrates one remote apply operation."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import requests

from remoteapply.apply import (
    ConfirmationGate,
    ConfirmationResult,
    LogRenderer,
    LogStreamRenderer,
    Output,
    PlanSourceResolver,
    PlanTrigger,
    Prompter,
    RunPoller,
    RunsClient,
    RunWaiter,
    StageWaiter,
    TaskStageGate,
    check_preflight,
    trigger_apply,
)
from remoteapply.config import BackendConfig
from remoteapply.controller import ControllerRunWaiter, ControllerStageWaiter, RunsController
from remoteapply.errors import PreconditionError, RemoteApplyError
from remoteapply.models import (
    ApplyOutcome,
    ApplyResult,
    Diagnostics,
    Operation,
    Run,
    Workspace,
)
from remoteapply.ui import StreamPrompter
from remoteapply.util.signals import Signals

logger = logging.getLogger(__name__)


class RemoteApplyBackend:
    """
    High-level entry point: preflight -> resolve -> confirm -> apply ->
    task stages -> poll -> logs.

    At most one apply-approval call is issued per `apply()` call.
    """

    def __init__(
        self,
        config: BackendConfig,
        *,
        plan_trigger: PlanTrigger,
        prompter: Optional[Prompter] = None,
        renderer: Optional[LogRenderer] = None,
        output: Optional[Output] = None,
        on_transition: Optional[Callable[[Run, str], None]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        client = RunsController(config, session=session)
        self._setup(
            config,
            client,
            plan_trigger=plan_trigger,
            run_waiter=ControllerRunWaiter(client, output),
            stage_waiter=ControllerStageWaiter(client, output),
            prompter=prompter if prompter is not None else StreamPrompter(client),
            renderer=renderer,
            output=output,
            on_transition=on_transition,
        )

    @classmethod
    def from_collaborators(
        cls,
        config: BackendConfig,
        client: RunsClient,
        *,
        plan_trigger: PlanTrigger,
        run_waiter: RunWaiter,
        stage_waiter: StageWaiter,
        prompter: Optional[Prompter] = None,
        renderer: Optional[LogRenderer] = None,
        output: Optional[Output] = None,
        on_transition: Optional[Callable[[Run, str], None]] = None,
    ) -> "RemoteApplyBackend":
        """Create a backend with injected collaborators (useful for tests)."""
        obj = cls.__new__(cls)
        obj._setup(
            config,
            client,
            plan_trigger=plan_trigger,
            run_waiter=run_waiter,
            stage_waiter=stage_waiter,
            prompter=prompter,
            renderer=renderer,
            output=output,
            on_transition=on_transition,
        )
        return obj

    def _setup(
        self,
        config: BackendConfig,
        client: RunsClient,
        *,
        plan_trigger: PlanTrigger,
        run_waiter: RunWaiter,
        stage_waiter: StageWaiter,
        prompter: Optional[Prompter],
        renderer: Optional[LogRenderer],
        output: Optional[Output],
        on_transition: Optional[Callable[[Run, str], None]],
    ) -> None:
        self._config = config
        self._client = client
        self._stage_waiter = stage_waiter
        self._output = output
        self._resolver = PlanSourceResolver(config, client, plan_trigger, output)
        self._gate = ConfirmationGate(config, client, prompter, output)
        self._poller = RunPoller(run_waiter, on_transition)
        self._logs = LogStreamRenderer(client, output, renderer)

    @property
    def config(self) -> BackendConfig:
        return self._config

    def apply(
        self,
        op: Operation,
        workspace: Workspace,
        signals: Optional[Signals] = None,
    ) -> ApplyResult:
        """
        Run one apply operation.

        Returns:
            ApplyResult. Clean negative endings (no changes, declined, not
            confirmable) are outcomes, not errors.

        Raises:
            PreconditionError: preflight failed; no remote call was made.
            ResolutionError: the saved plan cannot be applied here.
            ApplyNeedsUIConfirmationError: confirmation needed, input unavailable.
            OperationInterrupted: a cancellation signal fired.
            RemoteApplyError: any other failure. `exc.run` holds the last
                run snapshot when one was obtained.
        """
        if signals is None:
            signals = Signals()
        logger.info("starting apply operation in workspace %s", workspace.name)

        diags = check_preflight(op, workspace, self._config)
        if diags.has_errors():
            raise PreconditionError(diags, details={"workspace": workspace.name})

        resolution = self._resolver.resolve(op, workspace, signals)
        run = resolution.run
        if resolution.finished is not None:
            return ApplyResult(outcome=resolution.finished, run=run, diagnostics=diags)

        try:
            return self._apply_resolved(op, run, resolution.from_saved_plan,
                                        resolution.must_confirm, signals, diags)
        except RemoteApplyError as exc:
            if exc.run is None:
                exc.run = run
            raise

    def _apply_resolved(
        self,
        op: Operation,
        run: Run,
        from_saved_plan: bool,
        must_confirm: bool,
        signals: Signals,
        diags: Diagnostics,
    ) -> ApplyResult:
        confirmation = ConfirmationResult.NOT_REQUIRED
        if not from_saved_plan:
            confirmation = self._gate.confirm(op, run, must_confirm, signals)
            if confirmation is ConfirmationResult.DECLINED:
                if self._output is not None:
                    self._output.emit_raw_line("Apply discarded.")
                return ApplyResult(outcome=ApplyOutcome.DECLINED, run=run, diagnostics=diags)

        approve_calls = 1 if trigger_apply(self._client, op, run, confirmation) else 0

        # One gate per operation: task stages are fetched once for the run.
        TaskStageGate(self._client, self._stage_waiter).wait_pre_apply(run, signals)

        run = self._poller.poll(run, signals)
        try:
            self._logs.render(run, signals)
        except RemoteApplyError as exc:
            exc.run = run
            raise

        return ApplyResult(
            outcome=ApplyOutcome.COMPLETED,
            run=run,
            approve_calls=approve_calls,
            diagnostics=diags,
        )
