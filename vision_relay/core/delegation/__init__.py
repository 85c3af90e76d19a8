"""Delegation of image reads to a vision-capable analysis process."""

from .backend import AnalysisBackend
from .normalizer import normalize
from .subprocess_backend import SubprocessAnalysisBackend
from .types import Cancelled, DelegationOutcome, NormalizedSummary, ProcessError, Success

__all__ = [
    "AnalysisBackend",
    "Cancelled",
    "DelegationOutcome",
    "NormalizedSummary",
    "ProcessError",
    "SubprocessAnalysisBackend",
    "Success",
    "normalize",
]
