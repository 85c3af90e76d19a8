"""Extension-based image detection.

Classification looks at the path string only; it never opens the file.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from vision_relay.config.schema import DEFAULT_IMAGE_EXTENSIONS


@dataclass(frozen=True)
class ImageFile:
    """Path names a supported image."""

    mime_type: str


@dataclass(frozen=True)
class NotImage:
    """Path does not name a supported image."""


NOT_IMAGE = NotImage()

ClassificationResult = ImageFile | NotImage


def _extension(path: str) -> str | None:
    name = path.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return name.rsplit(".", 1)[-1].lower() or None


def mime_type_for(ext: str) -> str:
    return f"image/{'jpeg' if ext == 'jpg' else ext}"


def classify(path: str, extensions: Iterable[str] | None = None) -> ClassificationResult:
    """Classify ``path`` as ImageFile or NotImage by its extension."""
    supported = DEFAULT_IMAGE_EXTENSIONS if extensions is None else extensions
    ext = _extension(path)
    if ext and ext in supported:
        return ImageFile(mime_type=mime_type_for(ext))
    return NOT_IMAGE


__all__ = ["ClassificationResult", "ImageFile", "NOT_IMAGE", "NotImage", "classify", "mime_type_for"]
