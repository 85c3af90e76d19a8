"""Outcome types for a single delegation attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from vision_relay.core.errors import (
    AnalysisCancelledError,
    DelegationError,
    OutputLimitExceeded,
    ProcessExitError,
    ProcessSpawnError,
)

ProcessErrorKind = Literal["spawn", "exit", "overflow"]


@dataclass(frozen=True)
class Success:
    """Process exited 0 without cancellation."""

    raw_text: str

    ok = True

    def to_error(self) -> None:
        return None


@dataclass(frozen=True)
class ProcessError:
    """Process could not be spawned, exited non-zero, or overflowed its output cap."""

    message: str
    kind: ProcessErrorKind = "exit"
    exit_code: int | None = None
    stderr: str = ""

    ok = False

    def to_error(self) -> DelegationError:
        if self.kind == "spawn":
            return ProcessSpawnError(self.message)
        if self.kind == "overflow":
            return OutputLimitExceeded(self.message)
        return ProcessExitError(self.message, exit_code=self.exit_code, stderr=self.stderr)


@dataclass(frozen=True)
class Cancelled:
    """Caller aborted before the process outcome was decided."""

    reason: str = field(default="Operation aborted")

    ok = False

    @property
    def message(self) -> str:
        return self.reason

    def to_error(self) -> DelegationError:
        return AnalysisCancelledError(self.reason)


DelegationOutcome = Success | ProcessError | Cancelled


@dataclass(frozen=True)
class NormalizedSummary:
    """Human-readable analysis text extracted from raw process output."""

    text: str
    source: Literal["transcript", "raw"] = "raw"


__all__ = ["Cancelled", "DelegationOutcome", "NormalizedSummary", "ProcessError", "ProcessErrorKind", "Success"]
