"""Data model for remote runs, workspaces and task stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class RunStatus(str, Enum):
    """
    Run statuses reported by the remote service.

    `Run.status` is kept as a plain string so statuses this enum does not
    know yet still round-trip; members compare equal to their values.
    """

    PENDING = "pending"
    FETCHING = "fetching"
    FETCHING_COMPLETED = "fetching_completed"
    PRE_PLAN_RUNNING = "pre_plan_running"
    PRE_PLAN_COMPLETED = "pre_plan_completed"
    QUEUING = "queuing"
    PLAN_QUEUED = "plan_queued"
    PLANNING = "planning"
    PLANNED = "planned"
    COST_ESTIMATING = "cost_estimating"
    COST_ESTIMATED = "cost_estimated"
    POLICY_CHECKING = "policy_checking"
    POLICY_OVERRIDE = "policy_override"
    POLICY_SOFT_FAILED = "policy_soft_failed"
    POLICY_CHECKED = "policy_checked"
    POST_PLAN_RUNNING = "post_plan_running"
    POST_PLAN_COMPLETED = "post_plan_completed"
    PLANNED_AND_FINISHED = "planned_and_finished"
    PLANNED_AND_SAVED = "planned_and_saved"
    CONFIRMED = "confirmed"
    PRE_APPLY_RUNNING = "pre_apply_running"
    PRE_APPLY_COMPLETED = "pre_apply_completed"
    QUEUING_APPLY = "queuing_apply"
    APPLY_QUEUED = "apply_queued"
    APPLYING = "applying"
    APPLIED = "applied"
    DISCARDED = "discarded"
    ERRORED = "errored"
    CANCELED = "canceled"
    FORCE_CANCELED = "force_canceled"


TERMINAL_STATUSES: frozenset[str] = frozenset(
    {
        RunStatus.APPLIED.value,
        RunStatus.ERRORED.value,
        RunStatus.CANCELED.value,
        RunStatus.FORCE_CANCELED.value,
        RunStatus.DISCARDED.value,
    }
)

# Statuses in which the run waits for something other than itself.
WAITING_STATUSES: frozenset[str] = frozenset(
    {
        RunStatus.PENDING.value,
        RunStatus.CONFIRMED.value,
        RunStatus.QUEUING_APPLY.value,
        RunStatus.APPLY_QUEUED.value,
    }
)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


@dataclass(slots=True)
class WorkspacePermissions:
    can_update: bool = False
    can_queue_apply: bool = False


@dataclass(slots=True)
class Workspace:
    """Remote workspace identity, fetched by the caller and read-only here."""

    id: str
    name: str
    organization: str
    permissions: WorkspacePermissions = field(default_factory=WorkspacePermissions)
    vcs_repo: Optional[str] = None


@dataclass(slots=True)
class RunActions:
    is_confirmable: bool = False
    is_discardable: bool = False
    is_cancelable: bool = False


@dataclass(slots=True)
class Run:
    """
    Local snapshot of a remote run.

    The snapshot is never mutated locally; re-read it after any call that
    changes the run's state.
    """

    id: str
    status: str
    has_changes: bool = False
    actions: RunActions = field(default_factory=RunActions)
    workspace: Optional[Workspace] = None
    workspace_id: Optional[str] = None
    apply_id: Optional[str] = None


class StageKind(str, Enum):
    PRE_PLAN = "pre_plan"
    POST_PLAN = "post_plan"
    PRE_APPLY = "pre_apply"
    POST_APPLY = "post_apply"


class TaskStageStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    AWAITING_OVERRIDE = "awaiting_override"
    OVERRIDDEN = "overridden"
    CANCELED = "canceled"
    ERRORED = "errored"
    UNREACHABLE = "unreachable"


@dataclass(slots=True)
class TaskResult:
    """Outcome of one run task inside a stage."""

    id: str
    name: str
    status: str
    enforcement_level: str = "advisory"
    message: str = ""

    @property
    def is_mandatory(self) -> bool:
        return self.enforcement_level == "mandatory"


@dataclass(slots=True)
class TaskStage:
    """A gate computed once by the remote service for the lifetime of a run."""

    id: str
    stage: str
    status: str
    task_results: list[TaskResult] = field(default_factory=list)
