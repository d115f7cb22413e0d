"""Confirmation gate and apply-approval trigger."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from remoteapply.config import BackendConfig
from remoteapply.errors import ApplyNeedsUIConfirmationError, contextualize_error, general_error
from remoteapply.models import Operation, Run
from remoteapply.util.signals import Signals

from .interfaces import ConfirmationResult, Output, Prompter, RunsClient

logger = logging.getLogger(__name__)

CONFIRM_WORD: str = "yes"


@dataclass(frozen=True, slots=True)
class ConfirmationPrompt:
    query: str
    description: str


def build_confirmation_prompt(op: Operation) -> ConfirmationPrompt:
    if op.is_destroy:
        return ConfirmationPrompt(
            query=f'\nDo you really want to destroy all resources in workspace "{op.workspace}"?',
            description=(
                "All your managed infrastructure will be destroyed, as shown above.\n"
                f"There is no undo. Only '{CONFIRM_WORD}' will be accepted to confirm."
            ),
        )
    return ConfirmationPrompt(
        query=f'\nDo you want to perform these actions in workspace "{op.workspace}"?',
        description=(
            "The actions described above will be performed.\n"
            f"Only '{CONFIRM_WORD}' will be accepted to approve."
        ),
    )


class ConfirmationGate:
    """Decide whether and how the operator approves the apply."""

    def __init__(
        self,
        config: BackendConfig,
        client: RunsClient,
        prompter: Optional[Prompter] = None,
        output: Optional[Output] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._prompter = prompter
        self._output = output

    def confirm(
        self,
        op: Operation,
        run: Run,
        must_confirm: bool,
        signals: Signals,
    ) -> ConfirmationResult:
        """
        Run the confirmation step.

        Raises:
            ApplyNeedsUIConfirmationError: confirmation is required but input
                is disabled, missing or closed.
            OperationInterrupted: a cancellation signal fired while waiting.
        """
        if not must_confirm:
            # Separate plan output from apply output.
            if self._output is not None:
                self._output.emit_raw_line("")
            return ConfirmationResult.NOT_REQUIRED

        if not self._input_available(op):
            raise ApplyNeedsUIConfirmationError(details={"run_id": run.id})

        prompt = build_confirmation_prompt(op)
        try:
            result = self._prompter.confirm(  # type: ignore[union-attr]
                op,
                prompt.query,
                prompt.description,
                CONFIRM_WORD,
                run,
                signals,
            )
        except Exception as exc:
            raise contextualize_error("Failed to confirm apply", exc) from exc

        logger.info("confirmation for run %s: %s", run.id, result.value)
        if result is ConfirmationResult.DECLINED:
            self._discard_if_possible(run.id)
        return result

    def _input_available(self, op: Operation) -> bool:
        if not self._config.input_enabled or self._prompter is None:
            return False
        if op.ui_in is None or getattr(op.ui_in, "closed", False):
            return False
        return True

    def _discard_if_possible(self, run_id: str) -> None:
        try:
            run = self._client.read_run(run_id)
        except Exception as exc:
            raise general_error("Failed to retrieve run", exc) from exc

        if not run.actions.is_discardable:
            return
        try:
            self._client.discard_run(run_id)
        except Exception as exc:
            raise general_error("Failed to discard run", exc) from exc
        logger.info("discarded run %s after the apply was declined", run_id)


def trigger_apply(
    client: RunsClient,
    op: Operation,
    run: Run,
    confirmation: ConfirmationResult,
) -> bool:
    """
    Issue the apply-approval call unless the run is approved another way.

    Returns True when the call was issued.
    """
    if op.auto_approve or confirmation is ConfirmationResult.ALREADY_APPROVED:
        logger.debug("skipping apply approval for run %s (%s)", run.id,
                     "auto-approve" if op.auto_approve else "already approved")
        return False

    try:
        client.apply_run(run.id)
    except Exception as exc:
        raise general_error("Failed to approve the apply command", exc) from exc

    logger.info("approved apply for run %s", run.id)
    return True
