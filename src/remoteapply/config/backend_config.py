"""Backend configuration for remoteapply."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Optional

DEFAULT_HOSTNAME: str = "app.terraform.io"
DEFAULT_PARALLELISM: int = 10
DEFAULT_BASE_PATH: str = "/api/v2/"


@dataclass(slots=True, frozen=True)
class BackendConfig:
    """
    Immutable backend configuration, injected at construction.

    Attributes:
        hostname: Remote service hostname (also used for saved plan checks
            and run URLs).
        organization: Organization that owns the workspaces.
        token: Optional API bearer token.
        parallelism: Parallelism requested by the caller. Only the default
            is supported remotely.
        input_enabled: Whether interactive input may be requested.
        base_path: API base path.
        request_timeout_sec: Per-request timeout for the HTTP controller.
    """

    organization: str
    hostname: str = DEFAULT_HOSTNAME
    token: Optional[str] = None
    parallelism: int = DEFAULT_PARALLELISM
    input_enabled: bool = True
    base_path: str = DEFAULT_BASE_PATH
    request_timeout_sec: float = 30.0

    def __post_init__(self) -> None:
        for key in ("hostname", "organization"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"BackendConfig.{key} must be a non-empty string")

        if "/" in self.hostname or "://" in self.hostname:
            raise ValueError("BackendConfig.hostname must be a bare hostname")

        if self.token is not None and not isinstance(self.token, str):
            raise TypeError("BackendConfig.token must be a string")

        if not isinstance(self.parallelism, int) or self.parallelism < 1:
            raise ValueError("BackendConfig.parallelism must be a positive integer")

        if not self.base_path.startswith("/") or not self.base_path.endswith("/"):
            raise ValueError("BackendConfig.base_path must start and end with '/'")

        if self.request_timeout_sec <= 0:
            raise ValueError("BackendConfig.request_timeout_sec must be positive")

    @property
    def api_url(self) -> str:
        return f"https://{self.hostname}{self.base_path}"

    @property
    def has_custom_parallelism(self) -> bool:
        return self.parallelism != DEFAULT_PARALLELISM

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> "BackendConfig":
        """Build a config from a plain dict, rejecting unknown keys."""
        if not isinstance(data, dict):
            raise TypeError("BackendConfig data must be a dict")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown BackendConfig keys: {', '.join(unknown)}")
        return cls(**data)

    def __repr__(self) -> str:
        token = "***" if self.token else None
        return (
            f"BackendConfig(hostname={self.hostname!r}, "
            f"organization={self.organization!r}, token={token!r}, "
            f"parallelism={self.parallelism!r}, input_enabled={self.input_enabled!r})"
        )
