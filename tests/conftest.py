"""Pytest configuration for vision-relay tests.

Ensures the project root is in sys.path so imports work correctly, and
provides controllable fakes for the analysis process and backend.
"""

import asyncio
import sys
from collections import deque
from pathlib import Path

import pytest

# Add project root to sys.path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from vision_relay.core.delegation import AnalysisBackend, SubprocessAnalysisBackend, Success  # noqa: E402

RED_CIRCLE_JSON = (
    '{"messages":[{"role":"user","content":[]},'
    '{"role":"assistant","content":[{"type":"text","text":"A red circle."}]}]}'
)


class FakeStream:
    """Stream fed by the test; read() blocks until data or EOF."""

    def __init__(self):
        self._chunks: deque[bytes] = deque()
        self._eof = False
        self._ready = asyncio.Event()

    def feed(self, data: bytes) -> None:
        self._chunks.append(data)
        self._ready.set()

    def feed_eof(self) -> None:
        self._eof = True
        self._ready.set()

    async def read(self, n: int = -1) -> bytes:
        while not self._chunks and not self._eof:
            self._ready.clear()
            await self._ready.wait()
        if self._chunks:
            return self._chunks.popleft()
        return b""


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process with manual exit control."""

    def __init__(self):
        self.stdout = FakeStream()
        self.stderr = FakeStream()
        self.returncode: int | None = None
        self.terminate_calls = 0
        self.kill_calls = 0
        self._exited = asyncio.Event()

    def emit(self, stdout: bytes = b"", stderr: bytes = b"") -> None:
        if stdout:
            self.stdout.feed(stdout)
        if stderr:
            self.stderr.feed(stderr)

    def close_streams(self) -> None:
        self.stdout.feed_eof()
        self.stderr.feed_eof()

    def exit(self, code: int) -> None:
        self.close_streams()
        self.returncode = code
        self._exited.set()

    async def wait(self) -> int:
        await self._exited.wait()
        return self.returncode

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.exit(-15)

    def kill(self) -> None:
        self.kill_calls += 1
        self.exit(-9)


class FakeSpawner:
    """Replacement for asyncio.create_subprocess_exec."""

    def __init__(self, process: FakeProcess):
        self.process = process
        self.calls: list[tuple[str, tuple, dict]] = []
        self.error: Exception | None = None
        self.on_spawn = None
        self.spawned = asyncio.Event()

    async def __call__(self, program, *args, **kwargs):
        self.calls.append((program, args, kwargs))
        if self.error is not None:
            raise self.error
        if self.on_spawn is not None:
            self.on_spawn(self.process)
        self.spawned.set()
        return self.process


class StubBackend(AnalysisBackend):
    """Backend returning a preset outcome and recording calls."""

    model = "glm-4.6v"

    def __init__(self, outcome=None):
        self.outcome = outcome or Success(raw_text=RED_CIRCLE_JSON)
        self.calls: list[tuple[str, str, asyncio.Event | None]] = []

    async def invoke(self, absolute_path, instruction, cancel_event=None):
        self.calls.append((absolute_path, instruction, cancel_event))
        return self.outcome


@pytest.fixture
def fake_process():
    return FakeProcess()


@pytest.fixture
def spawner(fake_process):
    return FakeSpawner(fake_process)


@pytest.fixture
def backend(spawner):
    return SubprocessAnalysisBackend(spawn=spawner)


@pytest.fixture
def stub_backend():
    return StubBackend()
