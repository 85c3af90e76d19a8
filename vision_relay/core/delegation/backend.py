"""Base class for image analysis backends."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from .types import DelegationOutcome


class AnalysisBackend(ABC):
    """Analyzes an image file and returns raw response text.

    The router only depends on this interface, so a backend may run an
    external program, call a model in-process or make an HTTP request.
    """

    model: str = "unknown"

    @abstractmethod
    async def invoke(
        self,
        absolute_path: str,
        instruction: str,
        cancel_event: asyncio.Event | None = None,
    ) -> DelegationOutcome:
        """
        Analyze one image.

        Args:
            absolute_path: Absolute path of the image file
            instruction: Prompt sent along with the image
            cancel_event: Set by the caller to abort the analysis

        Returns:
            Exactly one of Success, ProcessError or Cancelled. Failures are
            reported as outcomes, never raised.
        """
        ...
