"""
ImageRead Middleware - read_file override for text-only models

When the active model is a trigger model (glm-4.7 / glm-4.7-long), image
reads are sent to a vision model through the analysis backend and the
summary text replaces the image. All other reads go to the next handler
unchanged.

The read tool's schema is not touched: this middleware only wraps tool
calls, so the declared parameters stay those of the host read tool.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Coroutine
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from langchain.agents.middleware.types import (
    AgentMiddleware,
    ModelRequest,
    ModelResponse,
    ToolCallRequest,
)
from langchain_core.messages import ToolMessage
from langgraph.config import get_stream_writer

from vision_relay.config.schema import ImageRelaySettings
from vision_relay.core.delegation import AnalysisBackend, SubprocessAnalysisBackend
from vision_relay.core.errors import RouterError
from vision_relay.core.router import (
    ExecutionContext,
    ReadRequest,
    ReadResult,
    ReadRouter,
    delegation_target,
    resolve_path,
)

READ_TOOL_NAME = "read_file"
READ_PATH_ARG = "file_path"


def model_id_of(model: Any) -> str | None:
    """Best-effort model id from a chat model instance or name."""
    if isinstance(model, str):
        return model or None
    for attr in ("model_name", "model", "model_id"):
        value = getattr(model, attr, None)
        if isinstance(value, str) and value:
            return value
    return None


class ImageReadMiddleware(AgentMiddleware):
    """
    Delegates image reads to a vision model for text-only active models.

    Features:
    - Active model tracked from every model call (or set explicitly)
    - Passthrough for non-trigger models and non-image files
    - Failed/cancelled analysis returned as an error ToolMessage
    """

    tools = []  # overrides an existing tool, injects none

    def __init__(
        self,
        workspace_root: str | Path,
        *,
        settings: ImageRelaySettings | None = None,
        backend: AnalysisBackend | None = None,
        model_name: str | None = None,
        tool_name: str = READ_TOOL_NAME,
        path_arg: str = READ_PATH_ARG,
        verbose: bool = True,
    ):
        """
        Args:
            workspace_root: Base directory for relative read paths
            settings: Trigger models, vision model and analysis program
            backend: Analysis backend (default: subprocess running settings.program)
            model_name: Active model id until the first model call is seen
            tool_name: Name of the read tool to override
            path_arg: Name of the read tool's path parameter
            verbose: Whether to print the init banner
        """
        AgentMiddleware.__init__(self)

        self.workspace_root = Path(workspace_root).resolve()
        self.settings = settings or ImageRelaySettings()
        self.backend = backend or SubprocessAnalysisBackend.from_settings(self.settings)
        self.active_model_id = model_name
        self.tool_name = tool_name
        self.path_arg = path_arg
        self.verbose = verbose

        if self.verbose:
            triggers = ", ".join(self.settings.trigger_models)
            print(f"[ImageRead] Overriding {self.tool_name}: images for [{triggers}] -> {self.backend.model}")

    def set_model_name(self, model_name: str | None) -> None:
        """Update the active model id (called by the host on model switch)."""
        self.active_model_id = model_name

    def _track_model(self, request: ModelRequest) -> None:
        model_id = model_id_of(getattr(request, "model", None))
        if model_id:
            self.active_model_id = model_id

    def _context(self) -> ExecutionContext:
        return ExecutionContext(
            active_model_id=self.active_model_id,
            working_directory=str(self.workspace_root),
            cancel_event=asyncio.Event(),
            on_update=self._stream_progress,
        )

    @staticmethod
    def _stream_progress(result: ReadResult) -> None:
        """Forward progress to LangGraph custom stream (no-op outside a graph run)."""
        try:
            writer = get_stream_writer()
        except RuntimeError:
            return
        writer({"type": "read_progress", "content": result.text, "details": result.details})

    def _needs_delegation(self, args: dict[str, Any]) -> bool:
        path = args.get(self.path_arg) or ""
        if not path:
            return False
        absolute_path = resolve_path(path, str(self.workspace_root))
        return delegation_target(absolute_path, self.active_model_id, self.settings) is not None

    async def _delegate(
        self,
        args: dict[str, Any],
        tool_call_id: str,
        direct_reader: Callable[[dict[str, Any]], Any],
    ) -> Any:
        request = ReadRequest(path=args.get(self.path_arg, ""), request_id=tool_call_id, params=args)
        router = ReadRouter(direct_reader, backend=self.backend, settings=self.settings)
        try:
            result = await router.route(request, self._context())
        except RouterError as e:
            return ToolMessage(content=str(e), tool_call_id=tool_call_id, name=self.tool_name, status="error")

        if isinstance(result, ReadResult):
            return ToolMessage(
                content=result.text,
                tool_call_id=tool_call_id,
                name=self.tool_name,
                artifact=result.details,
            )
        return result

    def wrap_model_call(
        self,
        request: ModelRequest,
        handler: Callable[[ModelRequest], ModelResponse],
    ) -> ModelResponse:
        self._track_model(request)
        return handler(request)

    async def awrap_model_call(
        self,
        request: ModelRequest,
        handler: Callable[[ModelRequest], Awaitable[ModelResponse]],
    ) -> ModelResponse:
        self._track_model(request)
        return await handler(request)

    def wrap_tool_call(
        self,
        request: ToolCallRequest,
        handler: Callable[[ToolCallRequest], Any],
    ) -> Any:
        """Intercept read calls; delegated reads run on a private event loop."""
        tool_call = request.tool_call
        if tool_call.get("name") != self.tool_name:
            return handler(request)

        args = tool_call.get("args", {}) or {}
        if not self._needs_delegation(args):
            return handler(request)

        return self._run_private(self._delegate(args, tool_call.get("id", ""), lambda params: handler(request)))

    @staticmethod
    def _run_private(coro: Coroutine[Any, Any, Any]) -> Any:
        """Run ``coro`` to completion from sync code.

        A thread that already runs an event loop (notebook cell, sync invoke
        inside an async handler) cannot nest asyncio.run, so the coroutine
        gets its own loop on a worker thread.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(coro)
        with ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()

    async def awrap_tool_call(
        self,
        request: ToolCallRequest,
        handler: Callable[[ToolCallRequest], Awaitable[Any]],
    ) -> Any:
        """Async: intercept read calls."""
        tool_call = request.tool_call
        if tool_call.get("name") != self.tool_name:
            return await handler(request)

        args = tool_call.get("args", {}) or {}
        if not self._needs_delegation(args):
            return await handler(request)

        return await self._delegate(args, tool_call.get("id", ""), lambda params: handler(request))


__all__ = ["ImageReadMiddleware", "READ_TOOL_NAME", "model_id_of"]
