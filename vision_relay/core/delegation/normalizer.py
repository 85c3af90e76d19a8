"""Turn raw analysis output into a single summary string.

``pi --json`` prints a transcript record:

    {"messages": [{"role": "user", ...},
                  {"role": "assistant", "content": [{"type": "text", "text": "..."}]}]}

The summary is the text of the last assistant message. Anything that does
not decode to that shape falls back to the raw output.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from .types import NormalizedSummary


class ContentPart(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    text: str | None = None


class TranscriptMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str | None = None
    # str / None content is legal for user messages; only a list is usable.
    # Parts are validated one by one in _assistant_text.
    content: list[Any] | str | None = None


class AnalysisTranscript(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Entries are validated lazily so a malformed tool/user entry does not
    # hide the assistant answer that follows it.
    messages: list[Any]


def decode_transcript(raw_text: str) -> AnalysisTranscript | None:
    """Decode raw output, or None if it is not a transcript record."""
    try:
        return AnalysisTranscript.model_validate_json(raw_text)
    except ValidationError:
        return None


def _as_message(entry: Any) -> TranscriptMessage | None:
    try:
        return TranscriptMessage.model_validate(entry)
    except ValidationError:
        return None


def _text_parts(content: list[Any]) -> list[str]:
    parts = []
    for entry in content:
        try:
            part = ContentPart.model_validate(entry)
        except ValidationError:
            continue
        if part.type == "text":
            parts.append(part.text or "")
    return parts


def _assistant_text(transcript: AnalysisTranscript) -> str | None:
    for entry in reversed(transcript.messages):
        message = _as_message(entry)
        if message is None or message.role != "assistant":
            continue
        if not isinstance(message.content, list):
            return None
        parts = _text_parts(message.content)
        return "\n".join(parts) if parts else None
    return None


def normalize(raw_text: str) -> NormalizedSummary:
    """Extract the assistant's answer from ``raw_text``. Never raises."""
    transcript = decode_transcript(raw_text)
    if transcript is None:
        return NormalizedSummary(text=raw_text, source="raw")

    text = _assistant_text(transcript)
    if not text:
        return NormalizedSummary(text=raw_text, source="raw")
    return NormalizedSummary(text=text, source="transcript")


__all__ = ["AnalysisTranscript", "ContentPart", "TranscriptMessage", "decode_transcript", "normalize"]
