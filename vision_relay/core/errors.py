"""Exception hierarchy for image read delegation.

Classification and normalization never raise. The analysis backend reports
failures as outcomes; ``outcome.to_error()`` maps them onto the
DelegationError subclasses below. Only the router raises, with RouterError.
"""

from __future__ import annotations

from typing import Any


class VisionRelayError(Exception):
    """Base class for all vision-relay errors."""


class DelegationError(VisionRelayError):
    """The analysis process did not produce a usable result."""


class ProcessSpawnError(DelegationError):
    """The analysis program is missing or could not be started."""


class ProcessExitError(DelegationError):
    """The analysis program exited with a non-zero code."""

    def __init__(self, message: str, exit_code: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class OutputLimitExceeded(DelegationError):
    """The analysis program wrote more than the configured output cap."""

    def __init__(self, message: str, limit: int | None = None):
        super().__init__(message)
        self.limit = limit


class AnalysisCancelledError(DelegationError):
    """The caller aborted the analysis."""


class RouterError(VisionRelayError):
    """Read routing failed. Rendered by hosts as a failed tool call."""

    is_tool_error = True


class DelegationFailed(RouterError):
    """Delegation was attempted and did not succeed."""

    def __init__(self, message: str, outcome: Any = None):
        super().__init__(message)
        self.outcome = outcome


class DelegationCancelled(DelegationFailed):
    """Delegation was aborted by the caller."""


__all__ = [
    "AnalysisCancelledError",
    "DelegationCancelled",
    "DelegationError",
    "DelegationFailed",
    "OutputLimitExceeded",
    "ProcessExitError",
    "ProcessSpawnError",
    "RouterError",
    "VisionRelayError",
]
