"""Tests for ReadRouter: passthrough, delegation, failures, progress."""

import asyncio
import os

import pytest

from vision_relay.config.schema import SUMMARY_PROMPT, ImageRelaySettings
from vision_relay.core.delegation import Cancelled, ProcessError, Success
from vision_relay.core.errors import (
    AnalysisCancelledError,
    DelegationCancelled,
    DelegationFailed,
    ProcessExitError,
    RouterError,
)
from vision_relay.core.router import ExecutionContext, ReadRequest, ReadResult, ReadRouter, resolve_path


class RecordingReader:
    def __init__(self):
        self.calls = []

    def __call__(self, params):
        self.calls.append(params)
        return {"direct": params}


@pytest.fixture
def reader():
    return RecordingReader()


@pytest.fixture
def router(reader, stub_backend):
    return ReadRouter(reader, backend=stub_backend)


def _ctx(tmp_path, model="glm-4.7", updates=None, cancel_event=None):
    return ExecutionContext(
        active_model_id=model,
        working_directory=str(tmp_path),
        cancel_event=cancel_event,
        on_update=updates.append if updates is not None else None,
    )


class TestPassthrough:
    @pytest.mark.asyncio
    async def test_non_trigger_model_reads_directly(self, router, reader, stub_backend, tmp_path):
        request = ReadRequest(path="shot.png", params={"file_path": "shot.png", "offset": 10})

        result = await router.route(request, _ctx(tmp_path, model="claude-sonnet"))

        assert result == {"direct": {"file_path": "shot.png", "offset": 10}}
        assert stub_backend.calls == []

    @pytest.mark.asyncio
    async def test_unknown_model_reads_directly(self, router, stub_backend, tmp_path):
        await router.route(ReadRequest(path="shot.png"), _ctx(tmp_path, model=None))
        assert stub_backend.calls == []

    @pytest.mark.asyncio
    async def test_trigger_model_text_file_reads_directly(self, router, reader, stub_backend, tmp_path):
        result = await router.route(ReadRequest(path="notes.md", params={"p": 1}), _ctx(tmp_path))

        assert result == {"direct": {"p": 1}}
        assert stub_backend.calls == []

    @pytest.mark.asyncio
    async def test_async_direct_reader_is_awaited(self, stub_backend, tmp_path):
        async def reader(params):
            await asyncio.sleep(0)
            return "file contents"

        router = ReadRouter(reader, backend=stub_backend)
        assert await router.route(ReadRequest(path="a.txt"), _ctx(tmp_path)) == "file contents"


class TestDelegation:
    @pytest.mark.asyncio
    async def test_image_summary(self, router, reader, stub_backend, tmp_path):
        result = await router.route(ReadRequest(path="shot.png"), _ctx(tmp_path))

        assert isinstance(result, ReadResult)
        assert result.text == "[Image analyzed with glm-4.6v]\n\nA red circle."
        assert result.text.endswith("A red circle.")
        assert result.details == {"summary_model": "glm-4.6v", "mime_type": "image/png"}
        assert reader.calls == []

    @pytest.mark.asyncio
    async def test_backend_receives_absolute_path_and_prompt(self, router, stub_backend, tmp_path):
        event = asyncio.Event()
        await router.route(ReadRequest(path="imgs/a.PNG"), _ctx(tmp_path, cancel_event=event))

        path, instruction, cancel_event = stub_backend.calls[0]
        assert path == os.path.join(str(tmp_path), "imgs", "a.PNG")
        assert instruction == SUMMARY_PROMPT
        assert cancel_event is event

    @pytest.mark.asyncio
    async def test_long_context_variant_triggers(self, router, stub_backend, tmp_path):
        await router.route(ReadRequest(path="a.jpg"), _ctx(tmp_path, model="glm-4.7-long"))
        assert len(stub_backend.calls) == 1

    @pytest.mark.asyncio
    async def test_progress_emitted_before_result(self, router, tmp_path):
        updates = []

        result = await router.route(ReadRequest(path="a.webp"), _ctx(tmp_path, updates=updates))

        assert [u.text for u in updates] == [
            "[Analyzing image with glm-4.6v...]",
            result.text,
        ]

    @pytest.mark.asyncio
    async def test_raw_output_used_when_not_a_transcript(self, router, stub_backend, tmp_path):
        stub_backend.outcome = Success(raw_text="plain string, not json")

        result = await router.route(ReadRequest(path="a.png"), _ctx(tmp_path))

        assert result.text == "[Image analyzed with glm-4.6v]\n\nplain string, not json"

    @pytest.mark.asyncio
    async def test_custom_trigger_models(self, reader, stub_backend, tmp_path):
        settings = ImageRelaySettings(trigger_models=["text-only-1"])
        router = ReadRouter(reader, backend=stub_backend, settings=settings)

        await router.route(ReadRequest(path="a.png"), _ctx(tmp_path, model="glm-4.7"))
        assert stub_backend.calls == []

        await router.route(ReadRequest(path="a.png"), _ctx(tmp_path, model="text-only-1"))
        assert len(stub_backend.calls) == 1


class TestFailures:
    @pytest.mark.asyncio
    async def test_process_error_raises_delegation_failed(self, router, reader, stub_backend, tmp_path):
        stub_backend.outcome = ProcessError(
            message="pi subprocess failed (1): model unavailable",
            exit_code=1,
            stderr="model unavailable",
        )
        updates = []

        with pytest.raises(DelegationFailed) as exc_info:
            await router.route(ReadRequest(path="a.png"), _ctx(tmp_path, updates=updates))

        error = exc_info.value
        assert isinstance(error, RouterError)
        assert error.is_tool_error
        assert not isinstance(error, DelegationCancelled)
        assert "Image analysis failed with glm-4.6v" in str(error)
        assert "model unavailable" in str(error)
        assert "connection issue" in str(error)
        assert isinstance(error.__cause__, ProcessExitError)
        assert error.__cause__.exit_code == 1
        # Only the progress update; no fallback to a direct read
        assert len(updates) == 1
        assert reader.calls == []

    @pytest.mark.asyncio
    async def test_cancelled_raises_delegation_cancelled(self, router, reader, stub_backend, tmp_path):
        stub_backend.outcome = Cancelled()

        with pytest.raises(DelegationCancelled) as exc_info:
            await router.route(ReadRequest(path="a.gif"), _ctx(tmp_path))

        assert "Operation aborted" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, AnalysisCancelledError)
        assert exc_info.value.outcome == Cancelled()
        assert reader.calls == []

    @pytest.mark.asyncio
    async def test_empty_summary_is_a_failure(self, router, stub_backend, tmp_path):
        stub_backend.outcome = Success(raw_text="")

        with pytest.raises(DelegationFailed, match="empty response"):
            await router.route(ReadRequest(path="a.png"), _ctx(tmp_path))


def test_resolve_path(tmp_path):
    assert resolve_path("a/../b.png", str(tmp_path)) == os.path.join(str(tmp_path), "b.png")
    assert resolve_path("/abs/c.png", str(tmp_path)) == "/abs/c.png"
