"""Layers: frozen value types for text, image and shape elements on the canvas.

Invariants:
    - Layers are immutable; every edit produces a new instance via dataclasses.replace
    - opacity is always within [0.0, 1.0]
    - Numeric fields hold finite floats; a value that is not one is dropped from a merge
    - id and z_index are never changed by a field merge (allocation and stacking are
      owned by the edit engine)
    - Unknown field names in a merge are ignored, never raised

Design Decisions:
    - Frozen dataclasses over dicts: history snapshots are immutable by construction
    - Field keys accepted in both snake_case and the camelCase of the canvas wire format
"""

import math
from dataclasses import dataclass, fields, replace
from typing import Any, ClassVar
from uuid import uuid4

from thumbnail_ai.core.domain_types import (
    LayerId, LayerType, ShapeType,
    TEXT_FILL, TEXT_STROKE, SHAPE_FILL,
)
from thumbnail_ai.core.errors import LayerValidationError

DEFAULT_LAYER_WIDTH = 400
DEFAULT_LAYER_HEIGHT = 100
DEFAULT_IMAGE_SIZE = 400
DEFAULT_TEXT = "Your Text Here"

# camelCase wire keys -> dataclass field names
CAMEL_TO_SNAKE: dict[str, str] = {
    "scaleX": "scale_x",
    "scaleY": "scale_y",
    "zIndex": "z_index",
    "fontSize": "font_size",
    "fontFamily": "font_family",
    "fontStyle": "font_style",
    "strokeWidth": "stroke_width",
    "verticalAlign": "vertical_align",
    "letterSpacing": "letter_spacing",
    "lineHeight": "line_height",
    "shapeType": "shape_type",
    "cornerRadius": "corner_radius",
}

GEOMETRY_FIELDS = frozenset({
    "x", "y", "width", "height", "rotation", "scale_x", "scale_y",
})
NUMERIC_FIELDS = GEOMETRY_FIELDS | {"font_size", "stroke_width", "corner_radius"}
OPTIONAL_NUMERIC_FIELDS = frozenset({"letter_spacing", "line_height"})
_PROTECTED_FIELDS = frozenset({"id", "z_index"})


@dataclass(frozen=True)
class CropRect:
    """Source-image crop rectangle, in source pixels."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Layer:
    """Fields shared by every layer variant."""
    id: LayerId
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = DEFAULT_LAYER_WIDTH
    height: float = DEFAULT_LAYER_HEIGHT
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    opacity: float = 1.0
    z_index: int = 0
    visible: bool = True
    locked: bool = False

    layer_type: ClassVar[LayerType]


@dataclass(frozen=True)
class TextLayer(Layer):
    text: str = DEFAULT_TEXT
    font_size: float = 72
    font_family: str = "Montserrat"
    font_style: str = "bold"
    fill: str = TEXT_FILL
    stroke: str | None = TEXT_STROKE
    stroke_width: float = 4
    align: str = "center"
    vertical_align: str = "middle"
    letter_spacing: float | None = None
    line_height: float | None = None

    layer_type: ClassVar[LayerType] = LayerType.TEXT


@dataclass(frozen=True)
class ImageLayer(Layer):
    src: str = ""
    crop: CropRect | None = None

    layer_type: ClassVar[LayerType] = LayerType.IMAGE


@dataclass(frozen=True)
class ShapeLayer(Layer):
    shape_type: ShapeType = ShapeType.RECTANGLE
    fill: str = SHAPE_FILL
    stroke: str | None = TEXT_STROKE
    stroke_width: float = 2
    corner_radius: float = 0

    layer_type: ClassVar[LayerType] = LayerType.SHAPE


LAYER_CLASSES: dict[LayerType, type[Layer]] = {
    LayerType.TEXT: TextLayer,
    LayerType.IMAGE: ImageLayer,
    LayerType.SHAPE: ShapeLayer,
}


def new_layer_id() -> LayerId:
    return LayerId(f"layer_{uuid4()}")


def field_names(layer_cls: type[Layer]) -> frozenset[str]:
    return frozenset(f.name for f in fields(layer_cls))


def normalize_key(key: str) -> str:
    """Map a camelCase wire key to its field name; snake_case passes through."""
    return CAMEL_TO_SNAKE.get(key, key)


def resolve_kind(kind: str | LayerType | ShapeType) -> tuple[LayerType, ShapeType | None]:
    """Resolve an add_layer kind ('text', 'image' or a shape name).

    Raises LayerValidationError for anything else (contract violation).
    """
    if isinstance(kind, ShapeType):
        return LayerType.SHAPE, kind
    value = kind.value if isinstance(kind, LayerType) else str(kind)
    if value == LayerType.TEXT.value:
        return LayerType.TEXT, None
    if value == LayerType.IMAGE.value:
        return LayerType.IMAGE, None
    try:
        return LayerType.SHAPE, ShapeType(value)
    except ValueError:
        raise LayerValidationError(
            f"Unknown layer kind '{value}'", field="kind",
        )


def coerce_fields(layer_cls: type[Layer], updates: dict[str, Any]) -> dict[str, Any]:
    """Filter and coerce a partial field dict for layer_cls. Pure, never raises."""
    allowed = field_names(layer_cls) - _PROTECTED_FIELDS
    result: dict[str, Any] = {}
    for raw_key, value in updates.items():
        key = normalize_key(raw_key)
        if key not in allowed:
            continue
        if key == "opacity":
            value = _clamp_opacity(value)
            if value is None:
                continue
        elif key in NUMERIC_FIELDS:
            value = _as_finite_float(value)
            if value is None:
                continue
        elif key in OPTIONAL_NUMERIC_FIELDS and value is not None:
            value = _as_finite_float(value)
            if value is None:
                continue
        elif key == "shape_type":
            try:
                value = ShapeType(value)
            except ValueError:
                continue
        elif key == "crop":
            value = _coerce_crop(value)
        result[key] = value
    return result


def apply_fields(layer: Layer, updates: dict[str, Any]) -> Layer:
    """Shallow-merge updates into layer. Returns the same instance if nothing applies."""
    changes = coerce_fields(type(layer), updates)
    changes = {k: v for k, v in changes.items() if getattr(layer, k) != v}
    if not changes:
        return layer
    return replace(layer, **changes)


def build_layer(
    kind: str | LayerType | ShapeType,
    layer_id: LayerId,
    z_index: int,
    canvas_width: int,
    canvas_height: int,
    overrides: dict[str, Any] | None = None,
) -> Layer:
    """Build a new layer with per-kind defaults, then merge caller overrides."""
    layer_type, shape_type = resolve_kind(kind)
    label = shape_type.value if shape_type else layer_type.value
    base: dict[str, Any] = {
        "id": layer_id,
        "name": f"{label.capitalize()} {z_index + 1}",
        "x": canvas_width / 4,
        "y": canvas_height / 4,
        "z_index": z_index,
    }
    layer: Layer
    if layer_type is LayerType.TEXT:
        layer = TextLayer(**base)
    elif layer_type is LayerType.IMAGE:
        layer = ImageLayer(
            **base, width=DEFAULT_IMAGE_SIZE, height=DEFAULT_IMAGE_SIZE,
        )
    else:
        layer = ShapeLayer(
            **base,
            shape_type=shape_type,
            corner_radius=8 if shape_type is ShapeType.RECTANGLE else 0,
        )
    return apply_fields(layer, overrides or {})


def _as_finite_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _clamp_opacity(value: Any) -> float | None:
    number = _as_finite_float(value)
    if number is None:
        return None
    return min(1.0, max(0.0, number))


def _coerce_crop(value: Any) -> CropRect | None:
    if isinstance(value, CropRect) or value is None:
        return value
    if not isinstance(value, dict):
        return None
    numbers = [_as_finite_float(value.get(k)) for k in ("x", "y", "width", "height")]
    if any(n is None for n in numbers):
        return None
    return CropRect(*numbers)
