"""Read Router - decides between direct reads and image delegation.

    route(request, ctx)
      ├─ active model not a trigger model  → direct read
      ├─ path is not an image               → direct read
      └─ image                              → analysis backend → normalize → ReadResult

Direct reads are returned exactly as the direct reader produced them.
A failed or cancelled delegation raises DelegationFailed; there is no
fallback to a direct read once delegation has started.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from vision_relay.config.schema import ImageRelaySettings

from .delegation import AnalysisBackend, Success, SubprocessAnalysisBackend, normalize
from .delegation.types import Cancelled, DelegationOutcome
from .errors import DelegationCancelled, DelegationFailed
from .image import ImageFile, classify

logger = logging.getLogger(__name__)

# Direct-read collaborator: receives the tool call params, may be sync or async
DirectReader = Callable[[dict[str, Any]], Any]


@dataclass(frozen=True)
class ReadRequest:
    path: str
    request_id: str = ""
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class TextBlock:
    value: str
    kind: str = "text"


@dataclass
class ReadResult:
    """Content returned to the caller for a delegated read."""

    content_blocks: list[TextBlock]
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_text(cls, text: str, details: dict[str, Any] | None = None) -> ReadResult:
        return cls(content_blocks=[TextBlock(value=text)], details=details or {})

    @property
    def text(self) -> str:
        return "\n".join(block.value for block in self.content_blocks if block.kind == "text")


@dataclass
class ExecutionContext:
    """Per-invocation context supplied by the caller. Never stored by the router."""

    active_model_id: str | None
    working_directory: str
    cancel_event: asyncio.Event | None = None
    has_ui: bool = False
    notify: Callable[[str, str], None] | None = None
    on_update: Callable[[ReadResult], None] | None = None

    def emit_update(self, result: ReadResult) -> None:
        if self.on_update is not None:
            self.on_update(result)


def resolve_path(path: str, working_directory: str) -> str:
    """Absolute, normalized path (symlinks are not followed)."""
    return os.path.abspath(os.path.join(working_directory, os.path.expanduser(path)))


def delegation_target(
    absolute_path: str,
    active_model_id: str | None,
    settings: ImageRelaySettings,
) -> ImageFile | None:
    """Return the image classification if this read must be delegated."""
    if not settings.is_trigger_model(active_model_id):
        return None
    classification = classify(absolute_path, settings.image_extensions)
    if isinstance(classification, ImageFile):
        return classification
    return None


def failure_message(model: str, reason: str) -> str:
    return (
        f"Image analysis failed with {model}: {reason}. "
        f"The image may not be supported (e.g., animated GIFs) or there was a connection issue."
    )


class ReadRouter:
    """Routes read requests to the direct reader or the analysis backend."""

    def __init__(
        self,
        direct_reader: DirectReader,
        *,
        backend: AnalysisBackend | None = None,
        settings: ImageRelaySettings | None = None,
    ):
        self.settings = settings or ImageRelaySettings()
        self.backend = backend or SubprocessAnalysisBackend.from_settings(self.settings)
        self.direct_reader = direct_reader

    @property
    def summary_model(self) -> str:
        return self.backend.model

    def should_delegate(self, absolute_path: str, ctx: ExecutionContext) -> ImageFile | None:
        return delegation_target(absolute_path, ctx.active_model_id, self.settings)

    async def route(self, request: ReadRequest, ctx: ExecutionContext) -> ReadResult | Any:
        absolute_path = resolve_path(request.path, ctx.working_directory)

        image = self.should_delegate(absolute_path, ctx)
        if image is None:
            logger.debug("Direct read for %s (model=%s)", absolute_path, ctx.active_model_id)
            return await self._passthrough(request)

        model = self.summary_model
        logger.debug("Delegating %s (%s) to %s", absolute_path, image.mime_type, model)
        ctx.emit_update(ReadResult.from_text(f"[Analyzing image with {model}...]"))

        outcome = await self.backend.invoke(absolute_path, self.settings.summary_prompt, ctx.cancel_event)
        if not isinstance(outcome, Success):
            raise self._failure(model, outcome) from outcome.to_error()

        summary = normalize(outcome.raw_text)
        if not summary.text:
            raise DelegationFailed(failure_message(model, "empty response"), outcome=outcome)

        result = ReadResult.from_text(
            f"[Image analyzed with {model}]\n\n{summary.text}",
            details={"summary_model": model, "mime_type": image.mime_type},
        )
        ctx.emit_update(result)
        return result

    async def _passthrough(self, request: ReadRequest) -> Any:
        result = self.direct_reader(dict(request.params))
        if inspect.isawaitable(result):
            result = await result
        return result

    @staticmethod
    def _failure(model: str, outcome: DelegationOutcome) -> DelegationFailed:
        logger.warning("Delegation to %s did not succeed: %s", model, outcome.message)
        if isinstance(outcome, Cancelled):
            return DelegationCancelled(failure_message(model, outcome.message), outcome=outcome)
        return DelegationFailed(failure_message(model, outcome.message), outcome=outcome)


__all__ = [
    "DirectReader",
    "ExecutionContext",
    "ReadRequest",
    "ReadResult",
    "ReadRouter",
    "TextBlock",
    "delegation_target",
    "failure_message",
    "resolve_path",
]
