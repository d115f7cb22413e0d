"""Endpoint paths for the remote run API (JSON:API)."""

from __future__ import annotations

JSONAPI_CONTENT_TYPE: str = "application/vnd.api+json"

RUN_PATH: str = "runs/{run_id}"
RUN_APPLY_PATH: str = "runs/{run_id}/actions/apply"
RUN_DISCARD_PATH: str = "runs/{run_id}/actions/discard"
RUN_CANCEL_PATH: str = "runs/{run_id}/actions/cancel"
RUN_TASK_STAGES_PATH: str = "runs/{run_id}/task-stages"
TASK_STAGE_PATH: str = "task-stages/{stage_id}"
APPLY_PATH: str = "applies/{apply_id}"

INCLUDE_WORKSPACE: str = "workspace"
INCLUDE_TASK_RESULTS: str = "task_results"

# Framing bytes the log archive wraps around the log body.
LOG_STX: bytes = b"\x02"
LOG_ETX: bytes = b"\x03"
