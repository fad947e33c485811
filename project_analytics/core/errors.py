from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AnalyticsError(Exception):
    """Base error envelope shared by the loader, the validators and the analyzers."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<snapshot>"
        return f"{loc}: {self.code}: {self.message}"


class SnapshotLoadError(AnalyticsError):
    pass


class InvalidInputError(AnalyticsError):
    pass


@dataclass(frozen=True)
class CycleDetected(AnalyticsError):
    """A phase transitively depends on itself. No schedule can be produced."""

    phase_id: Optional[str] = None
    cycle: tuple[str, ...] = ()

    @classmethod
    def for_cycle(
        cls, cycle: list[str], file: Optional[str] = None, path: Optional[str] = None
    ) -> "CycleDetected":
        return cls(
            code="E_CYCLE_DETECTED",
            message="dependency cycle detected: " + " -> ".join(cycle),
            file=file,
            path=path,
            phase_id=cycle[0],
            cycle=tuple(cycle),
        )
