import io
import unittest

from remoteapply.apply import ConfirmationResult
from remoteapply.backend import RemoteApplyBackend
from remoteapply.config import BackendConfig
from remoteapply.controller import ControllerRunWaiter, ControllerStageWaiter
from remoteapply.errors import (
    ApplyNeedsUIConfirmationError,
    Interrupt,
    OperationInterrupted,
    PreconditionError,
    RemoteCallError,
    ResolutionError,
    TaskStageError,
)
from remoteapply.models import (
    ApplyOutcome,
    Operation,
    PlanFile,
    PlanMode,
    Run,
    RunActions,
    SavedPlanBookmark,
    TaskStage,
    Workspace,
    WorkspacePermissions,
)
from remoteapply.ui import StreamPrompter
from remoteapply.util import Signals

LOG_BYTES = (
    b"Terraform v1.6.0\n"
    b"on linux_amd64\n"
    b"Initializing plugins and modules...\n"
    b'{"@level":"info","@message":"Apply complete! Resources: 1 added.","type":"apply_complete"}\n'
    b"plain text line\n"
)


def _workspace(**kwargs) -> Workspace:
    perms = WorkspacePermissions(
        can_update=kwargs.pop("can_update", True),
        can_queue_apply=kwargs.pop("can_queue_apply", True),
    )
    return Workspace(
        id=kwargs.pop("id", "ws-1"),
        name=kwargs.pop("name", "prod"),
        organization=kwargs.pop("organization", "acme"),
        permissions=perms,
        **kwargs,
    )


def _run(run_id: str = "run-1", status: str = "planned", **kwargs) -> Run:
    confirmable = kwargs.pop("confirmable", True)
    return Run(
        id=run_id,
        status=status,
        has_changes=kwargs.pop("has_changes", True),
        actions=RunActions(
            is_confirmable=confirmable,
            is_discardable=kwargs.pop("discardable", True),
            is_cancelable=True,
        ),
        **kwargs,
    )


class FakeClient:
    def __init__(self) -> None:
        self.calls = []
        self.runs = {"run-1": _run(workspace=_workspace())}
        self.stages = []
        self.log_bytes = LOG_BYTES
        self.on_apply = None

    def read_run(self, run_id: str, *, include_workspace: bool = False) -> Run:
        self.calls.append(("read_run", run_id, include_workspace))
        return self.runs[run_id]

    def apply_run(self, run_id: str) -> None:
        self.calls.append(("apply_run", run_id))
        if self.on_apply is not None:
            self.on_apply()

    def discard_run(self, run_id: str) -> None:
        self.calls.append(("discard_run", run_id))

    def cancel_run(self, run_id: str) -> None:
        self.calls.append(("cancel_run", run_id))

    def list_task_stages(self, run_id: str):
        self.calls.append(("list_task_stages", run_id))
        return list(self.stages)

    def read_task_stage(self, stage_id: str) -> TaskStage:
        raise AssertionError("not used")

    def open_apply_logs(self, apply_id: str):
        self.calls.append(("open_apply_logs", apply_id))
        return io.BytesIO(self.log_bytes)

    def count(self, name: str) -> int:
        return sum(1 for c in self.calls if c[0] == name)


class FakePlanTrigger:
    def __init__(self, run: Run) -> None:
        self.run = run
        self.calls = 0

    def __call__(self, op, workspace, signals) -> Run:
        self.calls += 1
        return self.run


class FakeRunWaiter:
    def __init__(self) -> None:
        self.calls = 0
        self.error = None

    def poll_run_to_terminal(self, run, signals, on_status=None) -> Run:
        self.calls += 1
        if self.error is not None:
            raise self.error
        signals.raise_if_interrupted()
        final = _run(run.id, "applied", confirmable=False, apply_id="apply-1")
        if on_status is not None:
            on_status(final)
        return final


class FakeStageWaiter:
    def __init__(self) -> None:
        self.calls = []
        self.error = None

    def wait_on_stage(self, run, stage_id, signals, label) -> None:
        self.calls.append((run.id, stage_id, label))
        if self.error is not None:
            raise self.error


class FakePrompter:
    def __init__(self, result: ConfirmationResult) -> None:
        self.result = result
        self.calls = []

    def confirm(self, op, query, description, required_word, run, signals):
        self.calls.append((query, description, required_word))
        return self.result


class RecordingOutput:
    def __init__(self) -> None:
        self.lines = []
        self.headers = []

    def emit_raw_line(self, text: str) -> None:
        self.lines.append(text)

    def emit_header(self, text: str) -> None:
        self.headers.append(text)


class RecordingRenderer:
    def __init__(self) -> None:
        self.records = []

    def render_log(self, record) -> None:
        self.records.append(record)


class TestRemoteApplyBackend(unittest.TestCase):
    def setUp(self) -> None:
        self.config = BackendConfig(organization="acme", hostname="app.example.io")
        self.client = FakeClient()
        self.trigger = FakePlanTrigger(_run(status="planned"))
        self.run_waiter = FakeRunWaiter()
        self.stage_waiter = FakeStageWaiter()
        self.output = RecordingOutput()
        self.renderer = RecordingRenderer()

    def _backend(self, prompter=None, config=None, renderer="default") -> RemoteApplyBackend:
        return RemoteApplyBackend.from_collaborators(
            config or self.config,
            self.client,
            plan_trigger=self.trigger,
            run_waiter=self.run_waiter,
            stage_waiter=self.stage_waiter,
            prompter=prompter,
            renderer=self.renderer if renderer == "default" else renderer,
            output=self.output,
        )

    def _interactive_op(self, **kwargs) -> Operation:
        return Operation(workspace="prod", ui_in=io.StringIO(), ui_out=io.StringIO(), **kwargs)

    def test_fresh_plan_confirmed_applies_once_and_renders_logs(self) -> None:
        prompter = FakePrompter(ConfirmationResult.CONFIRMED)
        result = self._backend(prompter).apply(self._interactive_op(), _workspace())

        self.assertEqual(result.outcome, ApplyOutcome.COMPLETED)
        self.assertEqual(result.run.status, "applied")
        self.assertEqual(result.approve_calls, 1)
        self.assertEqual(self.client.count("apply_run"), 1)
        self.assertEqual(len(prompter.calls), 1)
        self.assertIn("perform these actions", prompter.calls[0][0])
        self.assertEqual(prompter.calls[0][2], "yes")

        self.assertIn("plain text line", self.output.lines)
        self.assertNotIn("Terraform v1.6.0", self.output.lines)
        self.assertEqual(len(self.renderer.records), 1)
        self.assertEqual(self.renderer.records[0].message, "Apply complete! Resources: 1 added.")

    def test_fresh_plan_rereads_run_after_plan(self) -> None:
        # The trigger result says confirmable, the current run does not.
        self.client.runs["run-1"] = _run(confirmable=False)
        result = self._backend(FakePrompter(ConfirmationResult.CONFIRMED)).apply(
            self._interactive_op(), _workspace()
        )

        self.assertEqual(result.outcome, ApplyOutcome.NOT_CONFIRMABLE)
        self.assertIn(("read_run", "run-1", False), self.client.calls)
        self.assertEqual(self.client.count("apply_run"), 0)

    def test_destroy_mode_answered_yes_applies_exactly_once(self) -> None:
        op = Operation(
            workspace="prod",
            plan_mode=PlanMode.DESTROY,
            has_config=False,
            ui_in=io.StringIO("yes\n"),
            ui_out=io.StringIO(),
        )
        result = self._backend(StreamPrompter(self.client)).apply(op, _workspace())

        self.assertEqual(result.outcome, ApplyOutcome.COMPLETED)
        self.assertEqual(self.client.count("apply_run"), 1)
        self.assertIn("destroy all resources", op.ui_out.getvalue())
        self.assertIn("There is no undo", op.ui_out.getvalue())

    def test_no_configuration_aborts_before_remote_calls(self) -> None:
        op = Operation(workspace="prod", has_config=False)
        with self.assertRaises(PreconditionError) as ctx:
            self._backend().apply(op, _workspace())

        self.assertEqual(str(ctx.exception), "No configuration files found")
        self.assertEqual(self.client.calls, [])
        self.assertEqual(self.trigger.calls, 0)

    def test_queue_apply_permission_alone_is_enough(self) -> None:
        ws = _workspace(can_update=False, can_queue_apply=True)
        result = self._backend().apply(Operation(workspace="prod", auto_approve=True), ws)
        self.assertEqual(result.outcome, ApplyOutcome.COMPLETED)

    def test_hostname_mismatch_makes_no_remote_calls(self) -> None:
        bookmark = SavedPlanBookmark(hostname="other.example.io", run_id="run-1")
        op = Operation(workspace="prod", plan_file=PlanFile(path="plan.tfplan", bookmark=bookmark))

        with self.assertRaises(ResolutionError) as ctx:
            self._backend().apply(op, _workspace())

        self.assertEqual(str(ctx.exception), "Saved plan is for a different hostname")
        self.assertEqual(self.client.calls, [])
        self.assertEqual(self.trigger.calls, 0)

    def test_no_changes_finishes_without_apply(self) -> None:
        self.trigger.run = _run(has_changes=False, status="planned_and_finished")
        result = self._backend(FakePrompter(ConfirmationResult.CONFIRMED)).apply(
            self._interactive_op(), _workspace()
        )

        self.assertEqual(result.outcome, ApplyOutcome.NO_CHANGES)
        self.assertEqual(result.approve_calls, 0)
        self.assertEqual(self.client.calls, [])
        self.assertEqual(self.run_waiter.calls, 0)

    def test_errored_plan_is_not_a_failure(self) -> None:
        self.trigger.run = _run(status="errored")
        result = self._backend().apply(Operation(workspace="prod"), _workspace())
        self.assertEqual(result.outcome, ApplyOutcome.PLAN_ERRORED)

    def test_at_most_one_apply_call_for_every_combination(self) -> None:
        expected = {
            (False, ConfirmationResult.CONFIRMED): 1,
            (False, ConfirmationResult.ALREADY_APPROVED): 0,
            (False, ConfirmationResult.DECLINED): 0,
            (True, ConfirmationResult.CONFIRMED): 0,
            (True, ConfirmationResult.ALREADY_APPROVED): 0,
            (True, ConfirmationResult.DECLINED): 0,
        }
        for (auto_approve, answer), calls in expected.items():
            with self.subTest(auto_approve=auto_approve, answer=answer):
                self.client = FakeClient()
                prompter = FakePrompter(answer)
                result = self._backend(prompter).apply(
                    self._interactive_op(auto_approve=auto_approve), _workspace()
                )
                self.assertEqual(self.client.count("apply_run"), calls)
                self.assertEqual(result.approve_calls, calls)
                if auto_approve:
                    self.assertEqual(prompter.calls, [])

    def test_declined_discards_run_and_returns_cleanly(self) -> None:
        result = self._backend(FakePrompter(ConfirmationResult.DECLINED)).apply(
            self._interactive_op(), _workspace()
        )

        self.assertEqual(result.outcome, ApplyOutcome.DECLINED)
        self.assertEqual(self.client.count("discard_run"), 1)
        self.assertEqual(self.client.count("apply_run"), 0)
        self.assertIn("Apply discarded.", self.output.lines)
        self.assertEqual(self.run_waiter.calls, 0)

    def test_closed_input_needs_ui_confirmation(self) -> None:
        ui_in = io.StringIO()
        ui_in.close()
        op = Operation(workspace="prod", ui_in=ui_in, ui_out=io.StringIO())

        with self.assertRaises(ApplyNeedsUIConfirmationError):
            self._backend(FakePrompter(ConfirmationResult.CONFIRMED)).apply(op, _workspace())
        self.assertEqual(self.client.count("apply_run"), 0)

    def test_input_disabled_needs_ui_confirmation(self) -> None:
        config = BackendConfig(organization="acme", hostname="app.example.io", input_enabled=False)
        with self.assertRaises(ApplyNeedsUIConfirmationError):
            self._backend(FakePrompter(ConfirmationResult.CONFIRMED), config=config).apply(
                self._interactive_op(), _workspace()
            )

    def test_non_interactive_apply_approves_without_prompt(self) -> None:
        result = self._backend().apply(Operation(workspace="prod"), _workspace())
        self.assertEqual(result.approve_calls, 1)
        self.assertIn("", self.output.lines)

    def test_saved_plan_is_resumed_and_applied(self) -> None:
        bookmark = SavedPlanBookmark(hostname="app.example.io", run_id="run-1")
        op = Operation(workspace="prod", plan_file=PlanFile(path="plan", bookmark=bookmark))

        result = self._backend().apply(op, _workspace())

        self.assertEqual(result.outcome, ApplyOutcome.COMPLETED)
        self.assertEqual(self.trigger.calls, 0)
        self.assertIn(("read_run", "run-1", True), self.client.calls)
        self.assertEqual(self.client.count("apply_run"), 1)
        self.assertIn("will stop streaming the logs", self.output.headers[0])
        self.assertIn("https://app.example.io/app/acme/prod/runs/run-1", self.output.headers[1])

    def test_saved_plan_already_applied_explains_with_url(self) -> None:
        self.client.runs["run-1"] = _run(status="applied", confirmable=False, workspace=_workspace())
        bookmark = SavedPlanBookmark(hostname="app.example.io", run_id="run-1")
        op = Operation(workspace="prod", plan_file=PlanFile(path="plan", bookmark=bookmark))

        with self.assertRaises(ResolutionError) as ctx:
            self._backend().apply(op, _workspace())

        diag = ctx.exception.diagnostics.errors()[0]
        self.assertEqual(diag.summary, "Saved plan is already applied")
        self.assertIn("https://app.example.io/app/acme/prod/runs/run-1", diag.detail)
        self.assertIs(ctx.exception.run, self.client.runs["run-1"])

    def test_saved_plan_for_other_workspace_fails(self) -> None:
        other = _workspace(id="ws-2", name="staging")
        self.client.runs["run-1"] = _run(workspace=other)
        bookmark = SavedPlanBookmark(hostname="app.example.io", run_id="run-1")
        op = Operation(workspace="prod", plan_file=PlanFile(path="plan", bookmark=bookmark))

        with self.assertRaises(ResolutionError) as ctx:
            self._backend().apply(op, _workspace())

        detail = ctx.exception.diagnostics.errors()[0].detail
        self.assertIn("(acme/prod)", detail)
        self.assertIn("https://app.example.io/app/acme/staging/runs/run-1", detail)

    def test_pre_apply_stage_is_waited_on_once(self) -> None:
        self.client.stages = [
            TaskStage(id="ts-pre", stage="pre_apply", status="pending"),
            TaskStage(id="ts-post", stage="post_apply", status="pending"),
        ]
        self._backend().apply(Operation(workspace="prod", auto_approve=True), _workspace())

        self.assertEqual(self.client.count("list_task_stages"), 1)
        self.assertEqual(self.stage_waiter.calls, [("run-1", "ts-pre", "Pre-apply Tasks")])

    def test_stage_failure_keeps_run_for_inspection(self) -> None:
        self.client.stages = [TaskStage(id="ts-pre", stage="pre_apply", status="failed")]
        self.stage_waiter.error = TaskStageError("Pre-apply Tasks failed")

        with self.assertRaises(TaskStageError) as ctx:
            self._backend().apply(Operation(workspace="prod", auto_approve=True), _workspace())

        self.assertEqual(ctx.exception.run.id, "run-1")
        self.assertEqual(self.run_waiter.calls, 0)

    def test_stop_signal_is_reported_as_interrupt(self) -> None:
        self.run_waiter.error = OperationInterrupted(Interrupt.STOP)
        with self.assertRaises(OperationInterrupted) as ctx:
            self._backend().apply(Operation(workspace="prod", auto_approve=True), _workspace())
        self.assertIs(ctx.exception.kind, Interrupt.STOP)
        self.assertEqual(ctx.exception.run.id, "run-1")

    def test_hard_cancel_after_approval_cancels_remote_run(self) -> None:
        signals = Signals()
        self.client.on_apply = signals.request_cancel
        backend = RemoteApplyBackend.from_collaborators(
            self.config,
            self.client,
            plan_trigger=self.trigger,
            run_waiter=ControllerRunWaiter(self.client, min_delay_sec=0, max_delay_sec=0),
            stage_waiter=self.stage_waiter,
            output=self.output,
        )

        with self.assertRaises(OperationInterrupted) as ctx:
            backend.apply(Operation(workspace="prod"), _workspace(), signals)

        self.assertIs(ctx.exception.kind, Interrupt.CANCEL)
        self.assertEqual(self.client.count("apply_run"), 1)
        self.assertIn(("cancel_run", "run-1"), self.client.calls)

    def test_hard_cancel_during_stage_wait_cancels_remote_run(self) -> None:
        signals = Signals()
        self.client.on_apply = signals.request_cancel
        self.client.stages = [TaskStage(id="ts-pre", stage="pre_apply", status="pending")]
        backend = RemoteApplyBackend.from_collaborators(
            self.config,
            self.client,
            plan_trigger=self.trigger,
            run_waiter=self.run_waiter,
            stage_waiter=ControllerStageWaiter(self.client, min_delay_sec=0, max_delay_sec=0),
            output=self.output,
        )

        with self.assertRaises(OperationInterrupted) as ctx:
            backend.apply(Operation(workspace="prod"), _workspace(), signals)

        self.assertIs(ctx.exception.kind, Interrupt.CANCEL)
        self.assertIn(("cancel_run", "run-1"), self.client.calls)
        self.assertEqual(self.run_waiter.calls, 0)

    def test_poll_failure_is_wrapped(self) -> None:
        self.run_waiter.error = RuntimeError("connection reset")
        with self.assertRaises(RemoteCallError) as ctx:
            self._backend().apply(Operation(workspace="prod", auto_approve=True), _workspace())
        self.assertTrue(str(ctx.exception).startswith("Failed to retrieve run"))

    def test_structured_lines_dropped_without_renderer(self) -> None:
        self._backend(renderer=None).apply(
            Operation(workspace="prod", auto_approve=True), _workspace()
        )
        self.assertIn("plain text line", self.output.lines)
        self.assertFalse(any("Apply complete" in line for line in self.output.lines))


if __name__ == "__main__":
    unittest.main()
