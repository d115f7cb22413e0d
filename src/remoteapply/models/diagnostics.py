"""User-facing diagnostics aggregate."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A single summary/detail record shown to the user."""

    severity: Severity
    summary: str
    detail: str = ""


class Diagnostics:
    """
    Ordered collection of Diagnostic records.

    An aggregate with at least one ERROR entry represents a failure.
    """

    def __init__(self) -> None:
        self._items: list[Diagnostic] = []

    def append(self, diag: Diagnostic) -> "Diagnostics":
        self._items.append(diag)
        return self

    def extend(self, other: "Diagnostics") -> "Diagnostics":
        self._items.extend(other)
        return self

    def error(self, summary: str, detail: str = "") -> "Diagnostics":
        return self.append(Diagnostic(Severity.ERROR, summary, detail))

    def warning(self, summary: str, detail: str = "") -> "Diagnostics":
        return self.append(Diagnostic(Severity.WARNING, summary, detail))

    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._items)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.WARNING]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"Diagnostics({self._items!r})"
