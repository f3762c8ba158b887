"""Generation Types: value objects flowing through the AI generation path.

Invariants:
    - ThumbnailRequest.cache_params() contains exactly the fields that change the image
    - TextSuggestions.headline is never None (empty string when absent)
"""

from dataclasses import dataclass, field
from typing import Any

from thumbnail_ai.core.domain_types import (
    AspectRatio, Emotion, ImageStyle, DEFAULT_COLOR_SCHEME,
)


@dataclass(frozen=True)
class TextSuggestions:
    """Structured text from the text-suggestion generator."""
    headline: str
    subheadline: str = ""

    def to_dict(self) -> dict:
        return {"headline": self.headline, "subheadline": self.subheadline}


def text_suggestions_from_dict(data: Any) -> TextSuggestions | None:
    """Parse {"headline", "subheadline"}; anything else is absent."""
    if not isinstance(data, dict):
        return None
    headline = data.get("headline")
    if not isinstance(headline, str):
        return None
    subheadline = data.get("subheadline") or ""
    if not isinstance(subheadline, str):
        subheadline = ""
    return TextSuggestions(headline=headline, subheadline=subheadline)


@dataclass(frozen=True)
class ThumbnailRequest:
    """A user's request for a generated thumbnail background."""
    prompt: str
    image_style: ImageStyle = ImageStyle.CINEMATIC
    emotion: Emotion = Emotion.EXCITED
    aspect_ratio: AspectRatio = AspectRatio.WIDE

    def cache_params(self, sanitized_prompt: str) -> dict[str, str]:
        return {
            "prompt": sanitized_prompt,
            "aspectRatio": self.aspect_ratio.value,
            "imageStyle": self.image_style.value,
            "emotion": self.emotion.value,
        }


@dataclass(frozen=True)
class ImageAsset:
    """Reference to a generated image, its request fingerprint, and cache provenance."""
    url: str
    fingerprint: str = ""
    cached: bool = False


@dataclass(frozen=True)
class ThumbnailResult:
    """Complete generation result handed to the editor."""
    background_url: str
    text_suggestions: TextSuggestions
    color_scheme: tuple[str, ...] = field(default=DEFAULT_COLOR_SCHEME)
    cached: bool = False
