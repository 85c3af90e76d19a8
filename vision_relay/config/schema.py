"""Configuration schema for image read delegation.

Defines which active models trigger delegation, which model analyzes the
image, and how the external analysis program is invoked.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

DEFAULT_TRIGGER_MODELS = ["glm-4.7", "glm-4.7-long"]
DEFAULT_SUMMARY_MODEL = "glm-4.6v"
DEFAULT_SUMMARY_PROVIDER = "zai"
DEFAULT_PROGRAM = "pi"
DEFAULT_IMAGE_EXTENSIONS = ["jpg", "jpeg", "png", "gif", "webp"]

SUMMARY_PROMPT = """Please analyze this image comprehensively. Extract ALL information from the image including:

1. **Overall Description**: What type of content is this? (screenshot, diagram, document, photograph, UI, code, etc.)
2. **Text Content**: ALL visible text in the image, preserving structure and formatting. Include labels, buttons, error messages, file paths, code snippets, etc. Be exhaustive.
3. **Visual Elements**: Colors, layout, components, icons, graphical elements
4. **Technical Details**: For code, UI, diagrams - include exact values, class names, IDs, parameters, configurations
5. **Contextual Information**: Window titles, terminal prompts, file names, timestamps, status indicators
6. **Structure**: How elements are organized, relationships between components
7. **Actionable Information**: Any visible commands, settings, configurations, or parameters that could be useful

Format your response clearly with sections and bullet points. Be extremely thorough - the user needs to understand everything visible in this image to perform their task."""


class ImageRelaySettings(BaseModel):
    """Settings for routing image reads through a vision model."""

    trigger_models: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRIGGER_MODELS),
        description="Active model ids whose image reads are delegated",
    )
    summary_model: str = Field(DEFAULT_SUMMARY_MODEL, description="Vision model used for analysis")
    summary_provider: str = Field(DEFAULT_SUMMARY_PROVIDER, description="Provider passed to the analysis program")
    program: str = Field(DEFAULT_PROGRAM, description="Analysis program executable")
    image_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_IMAGE_EXTENSIONS),
        description="Extensions treated as images",
    )
    summary_prompt: str = Field(SUMMARY_PROMPT, description="Instruction sent with the image")
    max_output_bytes: int | None = Field(None, gt=0, description="Output cap per stream (None = unbounded)")

    @field_validator("trigger_models")
    @classmethod
    def validate_trigger_models(cls, v: list[str]) -> list[str]:
        models = [m.strip() for m in v if m and m.strip()]
        if not models:
            raise ValueError("trigger_models must not be empty")
        return models

    @field_validator("image_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lowercase and strip leading dots (".PNG" -> "png")."""
        normalized = []
        for ext in v:
            ext = ext.strip().lstrip(".").lower()
            if ext and ext not in normalized:
                normalized.append(ext)
        return normalized

    @field_validator("program")
    @classmethod
    def validate_program(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("program must not be empty")
        return v.strip()

    def is_trigger_model(self, model_id: str | None) -> bool:
        return bool(model_id) and model_id in self.trigger_models
