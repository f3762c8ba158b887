"""Generation Schemas — request/response models for the AI generation endpoints.

Invariants:
    - prompt: stripped, non-empty; longer prompts are accepted and truncated by the
      prompt sanitizer, never rejected for length up to max_length
    - trial_record is the caller's local trial record (camelCase browser format);
      the response echoes the updated record so the caller can persist it

Design Decisions:
    - Enum fields use the core enums directly: pydantic rejects unknown styles,
      emotions and aspect ratios with field-level details
"""

from pydantic import BaseModel, Field, field_validator

from thumbnail_ai.core.domain_types import AspectRatio, Emotion, ImageStyle


class TextSuggestionsPayload(BaseModel):
    headline: str = Field(max_length=500)
    subheadline: str = Field("", max_length=500)


class _PromptRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=5_000)

    @field_validator("prompt")
    @classmethod
    def strip_prompt(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("prompt cannot be empty or whitespace")
        return v


class ThumbnailGenerateRequest(_PromptRequest):
    image_style: ImageStyle = ImageStyle.CINEMATIC
    emotion: Emotion = Emotion.EXCITED
    aspect_ratio: AspectRatio = AspectRatio.WIDE
    trial_record: dict | None = None


class ThumbnailGenerateResponse(BaseModel):
    background_url: str
    text_suggestions: TextSuggestionsPayload
    color_scheme: list[str]
    cached: bool = False
    trial_record: dict | None = None


class TextGenerateRequest(_PromptRequest):
    pass
