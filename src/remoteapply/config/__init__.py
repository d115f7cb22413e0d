"""Public config exports for remoteapply."""

from __future__ import annotations

from .backend_config import (
    DEFAULT_BASE_PATH,
    DEFAULT_HOSTNAME,
    DEFAULT_PARALLELISM,
    BackendConfig,
)

__all__ = [
    "BackendConfig",
    "DEFAULT_HOSTNAME",
    "DEFAULT_PARALLELISM",
    "DEFAULT_BASE_PATH",
]
