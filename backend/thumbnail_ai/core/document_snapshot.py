"""Document Snapshot: serialization / deserialization for Document (canvas_state JSON).

Invariants:
    - document_to_snapshot produces a JSON-safe dict (no dataclasses, no Enums)
    - Keys follow the canvas wire format (camelCase: zIndex, scaleX, fontSize, shapeType)
    - document_from_snapshot never raises on malformed input: bad layers are skipped,
      missing keys fall back to layer defaults, a non-dict yields an empty Document
    - Duplicate ids are preserved here; sanitizing is the edit engine's load_state job

Design Decisions:
    - Per-variant key tables keep the mapping declarative instead of hand-written per field
    - Crop is flattened to cropX/cropY/cropWidth/cropHeight on the wire
"""

import logging
from enum import Enum
from typing import Any

from thumbnail_ai.core.document import Document
from thumbnail_ai.core.domain_types import CANVAS_WIDTH, CANVAS_HEIGHT, LayerId, LayerType
from thumbnail_ai.core.layers import (
    LAYER_CLASSES, ImageLayer, Layer, ShapeLayer, TextLayer, coerce_fields,
)

logger = logging.getLogger(__name__)

_BASE_KEYS: dict[str, str] = {
    "name": "name", "x": "x", "y": "y", "width": "width", "height": "height",
    "rotation": "rotation", "scaleX": "scale_x", "scaleY": "scale_y",
    "opacity": "opacity", "zIndex": "z_index", "visible": "visible",
    "locked": "locked",
}
_VARIANT_KEYS: dict[type[Layer], dict[str, str]] = {
    TextLayer: {
        "text": "text", "fontSize": "font_size", "fontFamily": "font_family",
        "fontStyle": "font_style", "fill": "fill", "stroke": "stroke",
        "strokeWidth": "stroke_width", "align": "align",
        "verticalAlign": "vertical_align", "letterSpacing": "letter_spacing",
        "lineHeight": "line_height",
    },
    ImageLayer: {"src": "src"},
    ShapeLayer: {
        "shapeType": "shape_type", "fill": "fill", "stroke": "stroke",
        "strokeWidth": "stroke_width", "cornerRadius": "corner_radius",
    },
}
_CROP_KEYS: dict[str, str] = {
    "cropX": "x", "cropY": "y", "cropWidth": "width", "cropHeight": "height",
}


def layer_to_snapshot(layer: Layer) -> dict:
    """Serialize one layer to its wire dict. Optional None fields are omitted."""
    data: dict[str, Any] = {"id": layer.id, "type": layer.layer_type.value}
    for key, attr in {**_BASE_KEYS, **_VARIANT_KEYS[type(layer)]}.items():
        value = getattr(layer, attr)
        if value is None:
            continue
        data[key] = value.value if isinstance(value, Enum) else value
    if isinstance(layer, ImageLayer) and layer.crop is not None:
        for key, attr in _CROP_KEYS.items():
            data[key] = getattr(layer.crop, attr)
    return data


def document_to_snapshot(document: Document) -> dict:
    """Serialize Document to JSON-safe dict. Pure, no IO."""
    return {
        "width": document.width,
        "height": document.height,
        "layers": [layer_to_snapshot(l) for l in document.layers],
    }


def layer_from_snapshot(data: Any, position: int = 0) -> Layer | None:
    """Reconstruct one layer, or None if the entry is unusable."""
    if not isinstance(data, dict):
        return None
    layer_id = data.get("id")
    try:
        layer_type = LayerType(data.get("type"))
    except ValueError:
        return None
    if not isinstance(layer_id, str) or not layer_id:
        return None

    cls = LAYER_CLASSES[layer_type]
    fields = {
        attr: data[key]
        for key, attr in {**_BASE_KEYS, **_VARIANT_KEYS[cls]}.items()
        if key in data
    }
    if cls is ImageLayer and all(k in data for k in _CROP_KEYS):
        fields["crop"] = {attr: data[key] for key, attr in _CROP_KEYS.items()}

    z_index = _as_int(data.get("zIndex"), position)
    try:
        return cls(id=LayerId(layer_id), z_index=z_index, **coerce_fields(cls, fields))
    except TypeError:
        return None


def document_from_snapshot(data: Any) -> Document:
    """Reconstruct Document from snapshot dict. Pure, no IO.

    Missing or invalid dimensions fall back to the default canvas size.
    """
    if not isinstance(data, dict):
        return Document()
    width = _as_int(data.get("width"), CANVAS_WIDTH)
    height = _as_int(data.get("height"), CANVAS_HEIGHT)
    if width <= 0 or height <= 0:
        width, height = CANVAS_WIDTH, CANVAS_HEIGHT

    raw_layers = data.get("layers")
    if not isinstance(raw_layers, list):
        raw_layers = []
    layers = []
    for position, entry in enumerate(raw_layers):
        layer = layer_from_snapshot(entry, position)
        if layer is None:
            logger.warning(f"Skipping malformed layer at position {position}")
            continue
        layers.append(layer)
    return Document(width=width, height=height, layers=tuple(layers))


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default
