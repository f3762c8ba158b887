"""Document: canvas dimensions plus the insertion-ordered layer collection.

Invariants:
    - width and height are positive integers
    - Layer ids are unique within a document
    - After normalize_z_order, z_index values are exactly {0, ..., n-1}
    - Painting order is ascending z_index; the layer panel lists descending z_index

Design Decisions:
    - Frozen dataclass holding a tuple: a Document is a value, safe to keep in history
    - Re-densifying is stable: ties in z_index keep insertion order
"""

import logging
from dataclasses import dataclass, field, replace

from thumbnail_ai.core.domain_types import CANVAS_WIDTH, CANVAS_HEIGHT, LayerId
from thumbnail_ai.core.layers import Layer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """Canvas dimensions and layers, the unit of persistence."""
    width: int = CANVAS_WIDTH
    height: int = CANVAS_HEIGHT
    layers: tuple[Layer, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"Canvas dimensions must be positive, got {self.width}x{self.height}",
            )

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def find(self, layer_id: LayerId | str) -> Layer | None:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def index_of(self, layer_id: LayerId | str) -> int:
        for i, layer in enumerate(self.layers):
            if layer.id == layer_id:
                return i
        return -1

    def with_layers(self, layers: list[Layer] | tuple[Layer, ...]) -> "Document":
        return replace(self, layers=tuple(layers))


def dedupe_layers(layers: list[Layer] | tuple[Layer, ...]) -> tuple[Layer, ...]:
    """Keep the first layer for each id; drop (and log) later duplicates."""
    seen: set[str] = set()
    unique: list[Layer] = []
    for layer in layers:
        if layer.id in seen:
            logger.warning(
                f"Duplicate layer id dropped: {layer.id}",
                extra={"layer_id": layer.id},
            )
            continue
        seen.add(layer.id)
        unique.append(layer)
    return tuple(unique)


def normalize_z_order(layers: list[Layer] | tuple[Layer, ...]) -> tuple[Layer, ...]:
    """Re-densify z_index to 0..n-1 preserving relative order. Insertion order kept."""
    ranked = sorted(range(len(layers)), key=lambda i: (layers[i].z_index, i))
    new_z = {idx: z for z, idx in enumerate(ranked)}
    return tuple(
        layer if layer.z_index == new_z[i] else replace(layer, z_index=new_z[i])
        for i, layer in enumerate(layers)
    )


def sanitize_document(document: Document) -> Document:
    """Drop duplicate ids, then re-densify stacking order."""
    return document.with_layers(normalize_z_order(dedupe_layers(document.layers)))


def has_dense_z_order(document: Document) -> bool:
    return sorted(l.z_index for l in document.layers) == list(range(document.layer_count))


def paint_order(document: Document) -> list[Layer]:
    """Layers bottom-to-top (ascending z_index), the order they are painted."""
    return sorted(document.layers, key=lambda l: l.z_index)


def panel_order(document: Document) -> list[Layer]:
    """Layers front-to-back (descending z_index), the layers panel order."""
    return sorted(document.layers, key=lambda l: l.z_index, reverse=True)
