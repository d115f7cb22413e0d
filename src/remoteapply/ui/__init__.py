"""Public UI exports for remoteapply."""

from __future__ import annotations

from .output import StreamOutput
from .prompt import StreamPrompter
from .render import PlainLogRenderer

__all__ = ["StreamOutput", "StreamPrompter", "PlainLogRenderer"]
