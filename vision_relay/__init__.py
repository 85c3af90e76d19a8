"""vision-relay: delegate image reads of text-only models to a vision model."""

from vision_relay.config import ImageRelaySettings, load_settings
from vision_relay.core import AnalyzeImageCommand, ExecutionContext, ReadRequest, ReadResult, ReadRouter, classify
from vision_relay.core.delegation import AnalysisBackend, SubprocessAnalysisBackend, normalize

__version__ = "0.1.0"

__all__ = [
    "AnalysisBackend",
    "AnalyzeImageCommand",
    "ExecutionContext",
    "ImageRelaySettings",
    "ReadRequest",
    "ReadResult",
    "ReadRouter",
    "SubprocessAnalysisBackend",
    "classify",
    "load_settings",
    "normalize",
]
