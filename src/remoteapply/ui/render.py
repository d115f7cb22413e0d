"""Plain-text renderer for structured log records."""

from __future__ import annotations

from typing import TextIO

from remoteapply.models import LogRecord

_LEVEL_PREFIX: dict[str, str] = {
    "error": "Error: ",
    "warn": "Warning: ",
}


class PlainLogRenderer:
    """Print a record's message, prefixed for warnings and errors."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def render_log(self, record: LogRecord) -> None:
        if not record.message:
            return
        prefix = _LEVEL_PREFIX.get(record.level.lower(), "")
        self._stream.write(f"{prefix}{record.message}\n")
        self._stream.flush()
