"""Stream the apply log to the user, without repeating the plan banner."""

from __future__ import annotations

import logging
import queue
import threading
from typing import BinaryIO, Generator, Optional, Union

from remoteapply.errors import contextualize_error, general_error
from remoteapply.models import Run, parse_log_line
from remoteapply.util.signals import Signals

from .interfaces import LogRenderer, Output, RunsClient

logger = logging.getLogger(__name__)

# The apply log opens with the same version and os/arch lines already
# shown with the plan output.
BANNER_LINES_TO_SKIP: int = 3

READ_CHUNK_SIZE: int = 64 * 1024

_READ_POLL_SEC: float = 0.1


def iter_log_lines(
    stream: BinaryIO,
    signals: Signals,
    *,
    chunk_size: int = READ_CHUNK_SIZE,
) -> Generator[str, None, None]:
    """
    Yield logical lines from a byte stream.

    A line split over several reads is yielded once, whole. A trailing
    fragment without a newline is yielded at EOF. Reads happen on a
    reader thread, so a signal is seen even while a read is stalled.

    Raises:
        RemoteCallError: on any read error other than EOF.
        OperationInterrupted: when a cancellation signal fires.
    """
    chunks: "queue.Queue[Union[bytes, BaseException, None]]" = queue.Queue(maxsize=1)
    done = threading.Event()
    reader = threading.Thread(
        target=_read_chunks, args=(stream, chunk_size, chunks, done), daemon=True
    )
    reader.start()

    buf = bytearray()
    try:
        while True:
            signals.raise_if_interrupted()
            try:
                chunk = chunks.get(timeout=_READ_POLL_SEC)
            except queue.Empty:
                continue
            if chunk is None:
                break
            if isinstance(chunk, BaseException):
                raise general_error("Failed to read logs", chunk) from chunk

            buf.extend(chunk)
            while True:
                idx = buf.find(b"\n")
                if idx < 0:
                    break
                line = _decode(buf[:idx])
                del buf[: idx + 1]
                yield line
    finally:
        done.set()

    if buf:
        yield _decode(buf)


def _read_chunks(
    stream: BinaryIO,
    chunk_size: int,
    chunks: "queue.Queue[Union[bytes, BaseException, None]]",
    done: threading.Event,
) -> None:
    """Feed `chunks` until EOF (None) or a read error; stop once `done` is set."""
    while not done.is_set():
        item: Union[bytes, BaseException, None]
        try:
            data = stream.read(chunk_size)
        except Exception as exc:
            item = exc
        else:
            item = data if data else None

        while not done.is_set():
            try:
                chunks.put(item, timeout=_READ_POLL_SEC)
                break
            except queue.Full:
                continue
        if item is None or isinstance(item, BaseException):
            return


def _decode(raw: bytes | bytearray) -> str:
    text = bytes(raw).decode("utf-8", errors="replace")
    if text.endswith("\r"):
        text = text[:-1]
    return text


class LogStreamRenderer:
    """
    Render the apply log of a finished run.

    Lines that are not JSON are printed verbatim. JSON lines go to the
    structured renderer; without one they are dropped, not printed raw.
    """

    def __init__(
        self,
        client: RunsClient,
        output: Optional[Output] = None,
        renderer: Optional[LogRenderer] = None,
    ) -> None:
        self._client = client
        self._output = output
        self._renderer = renderer

    def render(self, run: Run, signals: Signals) -> int:
        """Stream the logs; return the number of lines considered after the banner."""
        if not run.apply_id:
            logger.debug("run %s has no apply; no logs to render", run.id)
            return 0

        try:
            stream = self._client.open_apply_logs(run.apply_id)
        except Exception as exc:
            raise general_error("Failed to open apply logs", exc) from exc

        try:
            if self._output is None:
                return 0
            return self._render_stream(stream, signals)
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()

    def _render_stream(self, stream: BinaryIO, signals: Signals) -> int:
        considered = 0
        lines = iter_log_lines(stream, signals)
        try:
            for index, line in enumerate(lines):
                if index < BANNER_LINES_TO_SKIP:
                    logger.debug("skipping banner line %d", index + 1)
                    continue
                considered += 1
                if line:
                    self._render_line(line)
        finally:
            lines.close()
        return considered

    def _render_line(self, line: str) -> None:
        record = parse_log_line(line)
        if record is None:
            # Workspaces without structured output send plain text.
            self._output.emit_raw_line(line)  # type: ignore[union-attr]
            return

        if self._renderer is None:
            return
        try:
            self._renderer.render_log(record)
        except Exception as exc:
            raise contextualize_error("Failed to render log", exc) from exc
