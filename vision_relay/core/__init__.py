"""Core read routing: image classification, delegation and normalization."""

from .commands import AnalyzeImageCommand
from .errors import DelegationCancelled, DelegationFailed, RouterError
from .image import NOT_IMAGE, ImageFile, NotImage, classify
from .router import ExecutionContext, ReadRequest, ReadResult, ReadRouter, TextBlock

__all__ = [
    "AnalyzeImageCommand",
    "DelegationCancelled",
    "DelegationFailed",
    "ExecutionContext",
    "ImageFile",
    "NOT_IMAGE",
    "NotImage",
    "ReadRequest",
    "ReadResult",
    "ReadRouter",
    "RouterError",
    "TextBlock",
    "classify",
]
