"""Apply request model and saved plan references."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, TextIO

REMOTE_PLAN_FORMAT: int = 1


class PlanMode(str, Enum):
    NORMAL = "normal"
    DESTROY = "destroy"


@dataclass(slots=True, frozen=True)
class SavedPlanBookmark:
    """
    Reference to a plan computed earlier on the remote service.

    Stored on disk as JSON:
        {"remote_plan_format": 1, "run_id": "...", "hostname": "..."}
    """

    hostname: str
    run_id: str

    def __post_init__(self) -> None:
        for key in ("hostname", "run_id"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"SavedPlanBookmark.{key} must be a non-empty string")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedPlanBookmark":
        if data.get("remote_plan_format") != REMOTE_PLAN_FORMAT:
            raise ValueError("unsupported remote_plan_format")
        return cls(hostname=data.get("hostname", ""), run_id=data.get("run_id", ""))

    @classmethod
    def load(cls, path: str | Path) -> "SavedPlanBookmark":
        """Read a bookmark file. Raises ValueError if it is not one."""
        try:
            raw = Path(path).read_text(encoding="utf-8")
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValueError("not a saved plan bookmark") from exc
        if not isinstance(data, dict):
            raise ValueError("not a saved plan bookmark")
        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "remote_plan_format": REMOTE_PLAN_FORMAT,
            "run_id": self.run_id,
            "hostname": self.hostname,
        }


@dataclass(slots=True, frozen=True)
class PlanFile:
    """A plan file given to apply: either a local plan or a saved remote plan."""

    path: Optional[str] = None
    bookmark: Optional[SavedPlanBookmark] = None

    @classmethod
    def open(cls, path: str | Path) -> "PlanFile":
        try:
            bookmark = SavedPlanBookmark.load(path)
        except ValueError:
            return cls(path=str(path))
        return cls(path=str(path), bookmark=bookmark)

    @property
    def is_local(self) -> bool:
        return self.path is not None and self.bookmark is None

    @property
    def is_cloud(self) -> bool:
        return self.bookmark is not None


@dataclass(slots=True, frozen=True)
class Operation:
    """An apply request. Owned by the caller and read-only for the core."""

    workspace: str
    plan_file: Optional[PlanFile] = None
    plan_mode: PlanMode = PlanMode.NORMAL
    excludes: tuple[str, ...] = ()
    auto_approve: bool = False
    has_config: bool = True
    ui_in: Optional[TextIO] = None
    ui_out: Optional[TextIO] = None

    @property
    def bookmark(self) -> Optional[SavedPlanBookmark]:
        if self.plan_file is None:
            return None
        return self.plan_file.bookmark

    @property
    def is_destroy(self) -> bool:
        return self.plan_mode is PlanMode.DESTROY
