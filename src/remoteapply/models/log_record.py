"""Structured log records found in the apply log stream."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from remoteapply.util.time import parse_rfc3339, to_rfc3339


@dataclass(slots=True)
class LogRecord:
    """
    One structured (JSON) log line.

    Wire keys: "@level", "@message", "@module", "@timestamp", "type".
    Keys not modelled here are kept in `extra`.
    """

    level: str
    message: str
    kind: str = ""
    module: str = ""
    timestamp: Optional[datetime] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data["@level"] = self.level
        data["@message"] = self.message
        if self.module:
            data["@module"] = self.module
        if self.timestamp is not None:
            data["@timestamp"] = to_rfc3339(self.timestamp)
        if self.kind:
            data["type"] = self.kind
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


_KNOWN_KEYS: frozenset[str] = frozenset(
    {"@level", "@message", "@module", "@timestamp", "type"}
)


def parse_log_line(line: str) -> Optional[LogRecord]:
    """Parse one log line. Returns None if it is not a JSON object."""
    try:
        data = json.loads(line)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    timestamp = None
    if isinstance(data.get("@timestamp"), str):
        try:
            timestamp = parse_rfc3339(data["@timestamp"])
        except ValueError:
            timestamp = None

    return LogRecord(
        level=_str_or_empty(data.get("@level")),
        message=_str_or_empty(data.get("@message")),
        kind=_str_or_empty(data.get("type")),
        module=_str_or_empty(data.get("@module")),
        timestamp=timestamp,
        extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
    )


def _str_or_empty(value: Any) -> str:
    return value if isinstance(value, str) else ""
