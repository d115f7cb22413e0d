"""Static preconditions checked before any remote call."""

from __future__ import annotations

from remoteapply.config import BackendConfig
from remoteapply.models import Diagnostics, Operation, Workspace


def check_preflight(op: Operation, workspace: Workspace, config: BackendConfig) -> Diagnostics:
    """
    Evaluate every apply precondition and collect the results.

    All checks run; nothing short-circuits. The caller aborts when the
    returned aggregate has errors.
    """
    diags = Diagnostics()

    perms = workspace.permissions
    if not perms.can_update and not perms.can_queue_apply:
        diags.error(
            "Insufficient rights to apply changes",
            "The provided credentials have insufficient rights to apply changes. In order "
            "to apply changes at least write permissions on the workspace are required.",
        )

    if workspace.vcs_repo is not None:
        diags.error(
            "Apply not allowed for workspaces with a VCS connection",
            "A workspace that is connected to a VCS requires the VCS-driven workflow "
            "to ensure that the VCS remains the single source of truth.",
        )

    if config.has_custom_parallelism:
        diags.error(
            "Custom parallelism values are currently not supported",
            "The remote backend does not support setting a custom parallelism "
            "value at this time.",
        )

    if op.plan_file is not None and op.plan_file.is_local:
        diags.error(
            "Applying a saved local plan is not supported",
            "The remote backend can apply a saved cloud plan, or create a new plan when "
            "configuration is present. It cannot apply a saved local plan.",
        )

    if not op.has_config and not op.is_destroy:
        diags.error(
            "No configuration files found",
            "Apply requires configuration to be present. Applying without a configuration "
            "would mark everything for destruction, which is normally not what is desired. "
            "If you would like to destroy everything, please run destroy instead, which "
            "does not require any configuration files.",
        )

    if op.excludes:
        diags.error(
            "-exclude option is not supported",
            "The -exclude option is not currently supported for remote plans.",
        )

    return diags
