"""Thumbnail Seed: build the starting Document for a freshly generated thumbnail.

Invariants:
    - The background image covers the full canvas, is locked, and sits at z_index 0
    - Headline / subheadline layers are added only when their text is non-empty
    - Result satisfies the dense z_index invariant

Design Decisions:
    - Text colours come from the generation colour scheme (positions 2 and 3) with the
      default text fill/stroke as fallback
"""

from typing import Callable, Sequence

from thumbnail_ai.core.document import Document
from thumbnail_ai.core.domain_types import (
    CANVAS_WIDTH, CANVAS_HEIGHT, LayerId, TEXT_FILL, TEXT_STROKE,
)
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.layers import ImageLayer, Layer, TextLayer, new_layer_id

DEFAULT_PROJECT_NAME = "My First Thumbnail"
GENERATED_PROJECT_NAME = "AI Generated Thumbnail"


def seed_document(
    asset_ref: str | None,
    suggestions: TextSuggestions | None = None,
    color_scheme: Sequence[str] = (),
    width: int = CANVAS_WIDTH,
    height: int = CANVAS_HEIGHT,
    id_factory: Callable[[], LayerId] = new_layer_id,
) -> Document:
    fill = color_scheme[2] if len(color_scheme) > 2 else TEXT_FILL
    stroke = color_scheme[3] if len(color_scheme) > 3 else TEXT_STROKE
    layers: list[Layer] = []

    if asset_ref:
        layers.append(ImageLayer(
            id=id_factory(), name="Background",
            x=0, y=0, width=width, height=height,
            z_index=len(layers), locked=True, src=asset_ref,
        ))
    if suggestions and suggestions.headline:
        layers.append(TextLayer(
            id=id_factory(), name="Headline",
            x=width / 2 - 400, y=height / 2 - 60, width=800, height=120,
            z_index=len(layers), text=suggestions.headline,
            font_family="Impact", fill=fill, stroke=stroke,
        ))
    if suggestions and suggestions.subheadline:
        layers.append(TextLayer(
            id=id_factory(), name="Subheadline",
            x=width / 2 - 300, y=height / 2 + 60, width=600, height=60,
            z_index=len(layers), text=suggestions.subheadline,
            font_size=36, font_family="Arial", fill=fill, stroke=stroke,
            stroke_width=2,
        ))
    return Document(width=width, height=height, layers=tuple(layers))


def project_name_for(suggestions: TextSuggestions | None, from_trial: bool = False) -> str:
    """Trial transfers use the bare headline; fresh generations append ' Thumbnail'."""
    headline = suggestions.headline if suggestions else ""
    if from_trial:
        return headline or DEFAULT_PROJECT_NAME
    return f"{headline} Thumbnail" if headline else GENERATED_PROJECT_NAME
