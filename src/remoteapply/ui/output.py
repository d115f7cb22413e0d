"""Text stream output channel."""

from __future__ import annotations

from typing import TextIO


class StreamOutput:
    """Write user-facing lines and headers to a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def emit_raw_line(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()

    def emit_header(self, text: str) -> None:
        self._stream.write(text.strip("\n") + "\n\n")
        self._stream.flush()
