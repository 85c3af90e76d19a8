"""Analysis backend that runs the pi CLI as a one-shot subprocess.

    pi @/abs/image.png --provider zai --model glm-4.6v -p <prompt> --json

One process per invocation. stdout/stderr are drained concurrently into a
buffer owned by that invocation. The caller's cancel event terminates the
child; cancellation always wins over a simultaneous successful exit.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from vision_relay.config.schema import DEFAULT_PROGRAM, DEFAULT_SUMMARY_MODEL, DEFAULT_SUMMARY_PROVIDER

from .backend import AnalysisBackend
from .types import Cancelled, DelegationOutcome, ProcessError, Success

logger = logging.getLogger(__name__)

ATTACHMENT_PREFIX = "@"
READ_CHUNK_SIZE = 64 * 1024
TERMINATE_GRACE_SECONDS = 5.0

SpawnFn = Callable[..., Awaitable[Any]]


class _OutputOverflow(Exception):
    pass


@dataclass
class OutputBuffer:
    """Bytes collected from one analysis process."""

    limit: int | None = None
    stdout: bytearray = field(default_factory=bytearray)
    stderr: bytearray = field(default_factory=bytearray)

    def append(self, target: bytearray, chunk: bytes) -> None:
        target.extend(chunk)
        if self.limit is not None and len(target) > self.limit:
            raise _OutputOverflow(len(target))

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


class SubprocessAnalysisBackend(AnalysisBackend):
    """Runs the analysis program once per image."""

    def __init__(
        self,
        program: str = DEFAULT_PROGRAM,
        *,
        provider: str = DEFAULT_SUMMARY_PROVIDER,
        model: str = DEFAULT_SUMMARY_MODEL,
        env: dict[str, str] | None = None,
        max_output_bytes: int | None = None,
        spawn: SpawnFn | None = None,
    ):
        """
        Args:
            program: Analysis executable (looked up on PATH)
            provider: Provider id passed via --provider
            model: Vision model id passed via --model
            env: Extra environment variables for the child
            max_output_bytes: Per-stream output cap (None = unbounded)
            spawn: Process factory, defaults to asyncio.create_subprocess_exec
        """
        self.program = program
        self.provider = provider
        self.model = model
        self.env = env
        self.max_output_bytes = max_output_bytes
        self._spawn = spawn or asyncio.create_subprocess_exec

    @classmethod
    def from_settings(cls, settings: Any, **kwargs: Any) -> SubprocessAnalysisBackend:
        return cls(
            settings.program,
            provider=settings.summary_provider,
            model=settings.summary_model,
            max_output_bytes=settings.max_output_bytes,
            **kwargs,
        )

    def build_args(self, absolute_path: str, instruction: str) -> list[str]:
        return [
            f"{ATTACHMENT_PREFIX}{absolute_path}",
            "--provider",
            self.provider,
            "--model",
            self.model,
            "-p",
            instruction,
            "--json",
        ]

    def _merged_env(self) -> dict[str, str]:
        merged_env = os.environ.copy()
        if self.env:
            merged_env.update(self.env)
        return merged_env

    async def invoke(
        self,
        absolute_path: str,
        instruction: str,
        cancel_event: asyncio.Event | None = None,
    ) -> DelegationOutcome:
        if cancel_event is not None and cancel_event.is_set():
            return Cancelled()

        args = self.build_args(absolute_path, instruction)
        logger.debug("Spawning %s for %s (model=%s)", self.program, absolute_path, self.model)

        try:
            proc = await self._spawn(
                self.program,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._merged_env(),
            )
        except OSError as e:
            logger.warning("Failed to start %s: %s", self.program, e)
            return ProcessError(message=str(e), kind="spawn")

        buffer = OutputBuffer(limit=self.max_output_bytes)
        collector = asyncio.ensure_future(self._collect(proc, buffer))
        cancel_waiter = asyncio.ensure_future(cancel_event.wait()) if cancel_event is not None else None
        waiters = {collector} if cancel_waiter is None else {collector, cancel_waiter}

        try:
            await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            await self._abort(proc, collector)
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        # @@@cancel-wins - checked before the exit code, so an exit that lands
        # in the same loop iteration as the cancel still resolves Cancelled.
        if cancel_event is not None and cancel_event.is_set():
            await self._abort(proc, collector)
            logger.info("Analysis of %s cancelled", absolute_path)
            return Cancelled()

        error = collector.exception()
        if isinstance(error, _OutputOverflow):
            await self._abort(proc, collector)
            return ProcessError(
                message=f"{self.program} output exceeded {self.max_output_bytes} bytes",
                kind="overflow",
            )
        if error is not None:
            await self._abort(proc, collector)
            raise error

        exit_code = collector.result()
        if exit_code != 0:
            stderr = buffer.stderr_text.strip()
            logger.warning("%s exited with %s: %s", self.program, exit_code, stderr)
            return ProcessError(
                message=f"{self.program} subprocess failed ({exit_code}): {stderr}",
                kind="exit",
                exit_code=exit_code,
                stderr=stderr,
            )

        return Success(raw_text=buffer.stdout_text.strip())

    async def _collect(self, proc: Any, buffer: OutputBuffer) -> int:
        """Drain both streams to EOF, then reap the process."""
        readers = [
            asyncio.ensure_future(self._drain(proc.stdout, buffer.stdout, buffer)),
            asyncio.ensure_future(self._drain(proc.stderr, buffer.stderr, buffer)),
        ]
        try:
            await asyncio.gather(*readers)
        finally:
            for reader in readers:
                reader.cancel()
        return await proc.wait()

    @staticmethod
    async def _drain(stream: asyncio.StreamReader | None, target: bytearray, buffer: OutputBuffer) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            buffer.append(target, chunk)

    async def _abort(self, proc: Any, collector: asyncio.Future) -> None:
        """Terminate the child if it is still running and reap it."""
        if proc.returncode is None:
            try:
                proc.terminate()
            except ProcessLookupError:
                pass
        if not collector.done():
            collector.cancel()
        await asyncio.gather(collector, return_exceptions=True)

        try:
            await asyncio.wait_for(proc.wait(), timeout=TERMINATE_GRACE_SECONDS)
        except TimeoutError:
            logger.warning("%s ignored terminate, killing", self.program)
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()


__all__ = ["ATTACHMENT_PREFIX", "OutputBuffer", "SubprocessAnalysisBackend"]
