"""analyze-image command - manual image analysis from an interactive session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from vision_relay.config.schema import ImageRelaySettings

from .delegation import AnalysisBackend, Cancelled, DelegationOutcome, ProcessError, SubprocessAnalysisBackend, normalize
from .image import ImageFile, classify
from .router import resolve_path

logger = logging.getLogger(__name__)

ANALYZE_IMAGE_COMMAND = "analyze-image"

AnalysisJob = Callable[[asyncio.Event], Awaitable[DelegationOutcome]]


class CommandContext(Protocol):
    """Interactive surface a command runs against."""

    cwd: str
    has_ui: bool

    def notify(self, message: str, level: str = "info") -> None: ...

    async def run_with_loader(self, title: str, job: AnalysisJob) -> DelegationOutcome | None:
        """Show a progress widget while ``job`` runs; None if the widget was aborted."""
        ...

    async def show_editor(self, title: str, text: str) -> None: ...


class AnalyzeImageCommand:
    """/analyze-image <path> - analyze an image regardless of the active model."""

    name = ANALYZE_IMAGE_COMMAND

    def __init__(
        self,
        backend: AnalysisBackend | None = None,
        settings: ImageRelaySettings | None = None,
    ):
        self.settings = settings or ImageRelaySettings()
        self.backend = backend or SubprocessAnalysisBackend.from_settings(self.settings)

    @property
    def description(self) -> str:
        return f"Analyze an image file using {self.backend.model}"

    async def run(self, args: str, ctx: CommandContext) -> str | None:
        """Run the command. Returns the summary shown to the user, if any."""
        if not ctx.has_ui:
            ctx.notify(f"{self.name} requires interactive mode", "error")
            return None

        image_path = args.strip()
        if not image_path:
            ctx.notify(f"Usage: /{self.name} <path-to-image>", "error")
            return None

        absolute_path = resolve_path(image_path, ctx.cwd)
        if not isinstance(classify(absolute_path, self.settings.image_extensions), ImageFile):
            ctx.notify("Not a supported image file", "error")
            return None

        async def job(cancel_event: asyncio.Event) -> DelegationOutcome:
            return await self.backend.invoke(absolute_path, self.settings.summary_prompt, cancel_event)

        outcome = await ctx.run_with_loader(f"Analyzing {image_path}...", job)

        if outcome is None or isinstance(outcome, Cancelled):
            ctx.notify("Cancelled", "info")
            return None

        if isinstance(outcome, ProcessError):
            logger.error("Image analysis failed: %s", outcome.message)
            ctx.notify(f"Analysis failed: {outcome.message}", "error")
            return None

        summary = normalize(outcome.raw_text)
        await ctx.show_editor("Image Analysis", summary.text)
        return summary.text


def parse_command(line: str) -> tuple[str, str] | None:
    """Split "/name args" into (name, args). None if ``line`` is not a command."""
    line = line.strip()
    if not line.startswith("/"):
        return None
    name, _, args = line[1:].partition(" ")
    return name.lower(), args


__all__ = ["ANALYZE_IMAGE_COMMAND", "AnalysisJob", "AnalyzeImageCommand", "CommandContext", "parse_command"]
