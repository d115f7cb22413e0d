"""Remote run API controller (internal use only)."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, TypeVar

import requests

from remoteapply.config import BackendConfig
from remoteapply.errors import (
    ApiError,
    HttpErrorInfo,
    NetworkError,
    RateLimitError,
    RemoteApplyError,
    map_http_error,
)
from remoteapply.models import (
    Run,
    RunActions,
    TaskResult,
    TaskStage,
    Workspace,
    WorkspacePermissions,
)
from .endpoints import (
    APPLY_PATH,
    INCLUDE_TASK_RESULTS,
    INCLUDE_WORKSPACE,
    JSONAPI_CONTENT_TYPE,
    LOG_ETX,
    LOG_STX,
    RUN_APPLY_PATH,
    RUN_CANCEL_PATH,
    RUN_DISCARD_PATH,
    RUN_PATH,
    RUN_TASK_STAGES_PATH,
    TASK_STAGE_PATH,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class RunsController:
    """
    Remote run API controller (internal only).

    Notes:
        - Reads are retried on 429, 5xx and network errors.
        - Run actions (apply/discard/cancel) are retried on 429 only, so an
          action the server may have accepted is never sent twice.
    """

    def __init__(
        self,
        config: BackendConfig,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._config = config
        self._retry_policy = _RetryPolicy()
        self._session = session if session is not None else requests.Session()
        self._session.headers.update(
            {
                "Accept": JSONAPI_CONTENT_TYPE,
                "Content-Type": JSONAPI_CONTENT_TYPE,
            }
        )
        if config.token:
            self._session.headers["Authorization"] = f"Bearer {config.token}"

    @classmethod
    def from_session(cls, config: BackendConfig, session: Any) -> "RunsController":
        """Create controller from a pre-built session (useful for tests)."""
        obj = cls.__new__(cls)
        obj._config = config
        obj._retry_policy = _RetryPolicy()
        obj._session = session
        return obj

    # ----------------------------
    # Public API
    # ----------------------------
    def read_run(self, run_id: str, *, include_workspace: bool = False) -> Run:
        params = {"include": INCLUDE_WORKSPACE} if include_workspace else None
        payload = self._get_json(RUN_PATH.format(run_id=run_id), params=params)
        return _run_dict_to_run(payload.get("data") or {}, payload.get("included") or [])

    def apply_run(self, run_id: str) -> None:
        self._post_action(RUN_APPLY_PATH.format(run_id=run_id))

    def discard_run(self, run_id: str) -> None:
        self._post_action(RUN_DISCARD_PATH.format(run_id=run_id))

    def cancel_run(self, run_id: str) -> None:
        self._post_action(RUN_CANCEL_PATH.format(run_id=run_id))

    def list_task_stages(self, run_id: str) -> list[TaskStage]:
        payload = self._get_json(
            RUN_TASK_STAGES_PATH.format(run_id=run_id),
            params={"include": INCLUDE_TASK_RESULTS},
        )
        included = payload.get("included") or []
        return [_stage_dict_to_task_stage(d, included) for d in payload.get("data") or []]

    def read_task_stage(self, stage_id: str) -> TaskStage:
        payload = self._get_json(
            TASK_STAGE_PATH.format(stage_id=stage_id),
            params={"include": INCLUDE_TASK_RESULTS},
        )
        return _stage_dict_to_task_stage(payload.get("data") or {}, payload.get("included") or [])

    def open_apply_logs(self, apply_id: str) -> "ApplyLogStream":
        payload = self._get_json(APPLY_PATH.format(apply_id=apply_id))
        attrs = (payload.get("data") or {}).get("attributes") or {}
        url = attrs.get("log-read-url")
        if not isinstance(url, str) or not url:
            raise ApiError("Apply has no log-read-url", details={"apply_id": apply_id})

        # The log URL is pre-signed; do not forward the API token to it.
        resp = self._execute(
            lambda: self._send("GET", url, headers={"Authorization": None}, stream=True)
        )
        return ApplyLogStream(resp)

    # ----------------------------
    # Internals
    # ----------------------------
    def _url(self, path: str) -> str:
        return self._config.api_url + path

    def _get_json(self, path: str, *, params: Optional[dict[str, str]] = None) -> dict[str, Any]:
        resp = self._execute(lambda: self._send("GET", self._url(path), params=params))
        data = resp.json()
        if not isinstance(data, dict):
            raise ApiError("Unexpected response body", details={"path": path})
        return data

    def _post_action(self, path: str) -> None:
        self._execute(
            lambda: self._send("POST", self._url(path), json={}),
            idempotent=False,
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        resp = self._session.request(
            method,
            url,
            timeout=self._config.request_timeout_sec,
            **kwargs,
        )
        resp.raise_for_status()
        return resp

    def _execute(self, func: Callable[[], T], *, idempotent: bool = True) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if (
                    self._should_retry(mapped, idempotent=idempotent)
                    and attempt < self._retry_policy.max_retries
                ):
                    logger.debug("retrying after %s (attempt %d)", type(mapped).__name__, attempt + 1)
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception, *, idempotent: bool) -> bool:
        if isinstance(exc, RateLimitError):
            return True
        if not idempotent:
            return False
        if isinstance(exc, NetworkError):
            return True
        if isinstance(exc, ApiError):
            status_code = getattr(exc, "details", {}).get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: Exception) -> Exception:
        if isinstance(exc, RemoteApplyError):
            return exc

        if isinstance(exc, requests.HTTPError) and exc.response is not None:
            info = _http_error_to_info(exc.response)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (requests.ConnectionError, requests.Timeout, OSError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Remote API error", cause=exc)


class ApplyLogStream:
    """Byte stream over an apply log response, without STX/ETX framing."""

    def __init__(self, response: requests.Response, *, chunk_size: int = 64 * 1024) -> None:
        self._response = response
        self._chunks: Iterator[bytes] = response.iter_content(chunk_size=chunk_size)
        self._pending = b""

    def read(self, size: int = -1) -> bytes:
        while not self._pending:
            chunk = next(self._chunks, None)
            if chunk is None:
                return b""
            self._pending = chunk.replace(LOG_STX, b"").replace(LOG_ETX, b"")

        if size is None or size < 0:
            size = len(self._pending)
        data, self._pending = self._pending[:size], self._pending[size:]
        return data

    def close(self) -> None:
        self._response.close()


def _index_included(included: list[dict[str, Any]]) -> dict[tuple[str, str], dict[str, Any]]:
    return {
        (item.get("type", ""), item.get("id", "")): item
        for item in included
        if isinstance(item, dict)
    }


def _related_id(data: dict[str, Any], name: str) -> Optional[str]:
    rel = (data.get("relationships") or {}).get(name) or {}
    ref = rel.get("data")
    if isinstance(ref, dict) and isinstance(ref.get("id"), str):
        return ref["id"]
    return None


def _run_dict_to_run(data: dict[str, Any], included: list[dict[str, Any]]) -> Run:
    attrs = data.get("attributes") or {}
    actions = attrs.get("actions") or {}

    workspace_id = _related_id(data, "workspace")
    workspace = None
    ws_data = _index_included(included).get(("workspaces", workspace_id or ""))
    if ws_data is not None:
        workspace = _workspace_dict_to_workspace(ws_data)

    status = attrs.get("status")
    return Run(
        id=data.get("id", "") if isinstance(data.get("id"), str) else "",
        status=status if isinstance(status, str) else "",
        has_changes=bool(attrs.get("has-changes", False)),
        actions=RunActions(
            is_confirmable=bool(actions.get("is-confirmable", False)),
            is_discardable=bool(actions.get("is-discardable", False)),
            is_cancelable=bool(actions.get("is-cancelable", False)),
        ),
        workspace=workspace,
        workspace_id=workspace_id,
        apply_id=_related_id(data, "apply"),
    )


def _workspace_dict_to_workspace(data: dict[str, Any]) -> Workspace:
    attrs = data.get("attributes") or {}
    perms = attrs.get("permissions") or {}
    vcs_repo = attrs.get("vcs-repo")

    organization = _related_id(data, "organization") or ""
    return Workspace(
        id=data.get("id", ""),
        name=attrs.get("name", "") if isinstance(attrs.get("name"), str) else "",
        organization=organization,
        permissions=WorkspacePermissions(
            can_update=bool(perms.get("can-update", False)),
            can_queue_apply=bool(perms.get("can-queue-apply", False)),
        ),
        vcs_repo=_vcs_identifier(vcs_repo),
    )


def _vcs_identifier(vcs_repo: Any) -> Optional[str]:
    if not vcs_repo:
        return None
    if isinstance(vcs_repo, dict):
        ident = vcs_repo.get("identifier") or vcs_repo.get("display-identifier")
        return ident if isinstance(ident, str) else ""
    return str(vcs_repo)


def _stage_dict_to_task_stage(data: dict[str, Any], included: list[dict[str, Any]]) -> TaskStage:
    attrs = data.get("attributes") or {}
    by_key = _index_included(included)

    results: list[TaskResult] = []
    rel = (data.get("relationships") or {}).get("task-results") or {}
    for ref in rel.get("data") or []:
        if not isinstance(ref, dict):
            continue
        item = by_key.get((ref.get("type", "task-results"), ref.get("id", "")))
        if item is None:
            continue
        r_attrs = item.get("attributes") or {}
        results.append(
            TaskResult(
                id=item.get("id", ""),
                name=r_attrs.get("task-name", "") or "",
                status=r_attrs.get("status", "") or "",
                enforcement_level=r_attrs.get("workspace-task-enforcement-level", "advisory")
                or "advisory",
                message=r_attrs.get("message", "") or "",
            )
        )

    return TaskStage(
        id=data.get("id", ""),
        stage=attrs.get("stage", "") or "",
        status=attrs.get("status", "") or "",
        task_results=results,
    )


def _http_error_to_info(resp: Any) -> HttpErrorInfo:
    status_code = getattr(resp, "status_code", None)
    reason = getattr(resp, "reason", None)

    message = None
    details: dict[str, Any] = {}

    try:
        payload = resp.json()
    except Exception:
        payload = None

    if isinstance(payload, dict):
        errors = payload.get("errors") or []
        if errors and isinstance(errors, list):
            first = errors[0]
            if isinstance(first, dict):
                title = first.get("title")
                detail = first.get("detail")
                message = ": ".join(p for p in (title, detail) if isinstance(p, str) and p) or None
                details["errors"] = errors
            elif isinstance(first, str):
                message = first

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
