"""Dual cancellation signals threaded through every blocking step."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from remoteapply.errors import Interrupt, OperationInterrupted

_WAIT_SLICE_SEC: float = 0.1


@dataclass(frozen=True)
class Signals:
    """
    Two independent cancellation tokens.

    - stop: abandon the current local wait; a triggered remote apply keeps
      running server-side.
    - cancel: additionally request that the remote run be canceled.
    """

    stop: threading.Event = field(default_factory=threading.Event)
    cancel: threading.Event = field(default_factory=threading.Event)

    def request_stop(self) -> None:
        self.stop.set()

    def request_cancel(self) -> None:
        self.cancel.set()

    def interrupt(self) -> Optional[Interrupt]:
        """Return the fired signal, if any. Cancel wins over stop."""
        if self.cancel.is_set():
            return Interrupt.CANCEL
        if self.stop.is_set():
            return Interrupt.STOP
        return None

    def raise_if_interrupted(self) -> None:
        kind = self.interrupt()
        if kind is not None:
            raise OperationInterrupted(kind)

    def wait(self, timeout: float) -> Optional[Interrupt]:
        """Sleep up to `timeout` seconds, returning early when a signal fires."""
        deadline = time.monotonic() + max(timeout, 0.0)
        while True:
            kind = self.interrupt()
            if kind is not None:
                return kind
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            self.stop.wait(min(remaining, _WAIT_SLICE_SEC))
