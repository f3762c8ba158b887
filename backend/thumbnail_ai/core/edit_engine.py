"""Edit Engine: single-writer mutation of a Document with linear undo/redo history.

Invariants:
    - Every discrete operation (add, delete, move, duplicate) computes the complete next
      Document first, then assigns it and checkpoints in one step
    - History is a flat list of immutable Documents plus a cursor; the cursor is -1 only
      before the first checkpoint, otherwise a valid index
    - A checkpoint taken while the cursor is not at the tail discards the redo tail
    - z_index values stay exactly {0..n-1} across add / delete / move / duplicate / load
    - Operations on an unknown layer id are no-ops (return False / None), never raise
    - update_layer never checkpoints; callers coalesce continuous edits and call checkpoint()

Design Decisions:
    - Pure object, no IO: owned by whoever opened the editing session (dependency-injected,
      never module-global inside core)
    - The first checkpoint of a fresh engine also records the Document it was built (or
      reset) with as entry 0, so the very first mutation is undoable like any other,
      whether it was a discrete operation or a checkpointed freeform edit
    - Layer ids come from an injectable factory so tests get deterministic ids
"""

import logging
from dataclasses import replace
from typing import Any, Callable

from thumbnail_ai.core.document import (
    Document, normalize_z_order, paint_order, panel_order, sanitize_document,
)
from thumbnail_ai.core.domain_types import Direction, LayerId, LayerType, ShapeType
from thumbnail_ai.core.errors import LayerValidationError
from thumbnail_ai.core.layers import (
    GEOMETRY_FIELDS, Layer, apply_fields, build_layer, new_layer_id,
)

logger = logging.getLogger(__name__)

DUPLICATE_OFFSET = 20


class EditEngine:
    """Owns one live Document, its selection, and its undo/redo history."""

    def __init__(
        self,
        document: Document | None = None,
        id_factory: Callable[[], LayerId] = new_layer_id,
    ):
        self._document = sanitize_document(document) if document else Document()
        self._baseline = self._document
        self._history: list[Document] = []
        self._cursor = -1
        self._selected_id: LayerId | None = None
        self._id_factory = id_factory

    # --- Read access -----------------------------------------------------------

    @property
    def document(self) -> Document:
        return self._document

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def history_length(self) -> int:
        return len(self._history)

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._history) - 1

    @property
    def selected_layer_id(self) -> LayerId | None:
        return self._selected_id

    @property
    def selected_layer(self) -> Layer | None:
        if self._selected_id is None:
            return None
        return self._document.find(self._selected_id)

    def paint_order(self) -> list[Layer]:
        return paint_order(self._document)

    def panel_order(self) -> list[Layer]:
        return panel_order(self._document)

    def select_layer(self, layer_id: LayerId | None) -> bool:
        """Select a layer (or clear with None). Unknown ids are ignored."""
        if layer_id is not None and self._document.find(layer_id) is None:
            return False
        self._selected_id = layer_id
        return True

    # --- Discrete operations (always checkpoint) --------------------------------

    def add_layer(
        self,
        kind: str | LayerType | ShapeType,
        overrides: dict[str, Any] | None = None,
    ) -> LayerId:
        """Append a new layer on top of the stack and select it."""
        layer_id = self._id_factory()
        layer = build_layer(
            kind, layer_id, self._document.layer_count,
            self._document.width, self._document.height, overrides,
        )
        self._commit(self._document.with_layers([*self._document.layers, layer]))
        self._selected_id = layer_id
        logger.debug(f"Canvas action: add {layer.layer_type.value}", extra={"layer_id": layer_id})
        return layer_id

    def delete_layer(self, layer_id: LayerId) -> bool:
        if self._document.find(layer_id) is None:
            return False
        remaining = [l for l in self._document.layers if l.id != layer_id]
        self._commit(self._document.with_layers(normalize_z_order(remaining)))
        if self._selected_id == layer_id:
            self._selected_id = None
        return True

    def move_layer(self, layer_id: LayerId, direction: Direction | str) -> bool:
        """Swap the layer one step up/down the stack. No-op (no checkpoint) at a boundary."""
        try:
            direction = Direction(direction)
        except ValueError:
            raise LayerValidationError(
                f"Unknown direction '{direction}'", field="direction",
            )
        layer = self._document.find(layer_id)
        if layer is None:
            return False

        top = self._document.layer_count - 1
        if direction is Direction.UP:
            target = min(layer.z_index + 1, top)
        else:
            target = max(layer.z_index - 1, 0)
        if target == layer.z_index:
            return False

        layers = []
        for other in self._document.layers:
            if other.id == layer_id:
                layers.append(replace(other, z_index=target))
            elif other.z_index == target:
                layers.append(replace(other, z_index=layer.z_index))
            else:
                layers.append(other)
        self._commit(self._document.with_layers(layers))
        return True

    def duplicate_layer(self, layer_id: LayerId) -> LayerId | None:
        """Copy a layer (new id, offset position) onto the top of the stack and select it."""
        layer = self._document.find(layer_id)
        if layer is None:
            return None
        copy_id = self._id_factory()
        copy = replace(
            layer,
            id=copy_id,
            name=f"{layer.name} Copy",
            x=layer.x + DUPLICATE_OFFSET,
            y=layer.y + DUPLICATE_OFFSET,
            z_index=self._document.layer_count,
        )
        self._commit(self._document.with_layers([*self._document.layers, copy]))
        self._selected_id = copy_id
        return copy_id

    # --- Freeform edits (caller checkpoints) ------------------------------------

    def update_layer(self, layer_id: LayerId, updates: dict[str, Any]) -> bool:
        """Shallow-merge fields into a layer. Locked layers still accept explicit updates."""
        index = self._document.index_of(layer_id)
        if index == -1:
            return False
        layer = self._document.layers[index]
        updated = apply_fields(layer, updates)
        if updated is layer:
            return False
        layers = list(self._document.layers)
        layers[index] = updated
        self._document = self._document.with_layers(layers)
        return True

    def transform_layer(self, layer_id: LayerId, **geometry: float) -> bool:
        """Direct manipulation (drag/resize/rotate). Rejected on locked layers."""
        layer = self._document.find(layer_id)
        if layer is None:
            return False
        if layer.locked:
            logger.debug(
                "Transform rejected on locked layer", extra={"layer_id": layer_id},
            )
            return False
        changes = {k: v for k, v in geometry.items() if k in GEOMETRY_FIELDS}
        return self.update_layer(layer_id, changes)

    def toggle_visibility(self, layer_id: LayerId) -> bool:
        layer = self._document.find(layer_id)
        if layer is None:
            return False
        return self.update_layer(layer_id, {"visible": not layer.visible})

    def toggle_lock(self, layer_id: LayerId) -> bool:
        layer = self._document.find(layer_id)
        if layer is None:
            return False
        return self.update_layer(layer_id, {"locked": not layer.locked})

    def checkpoint(self) -> bool:
        """Record the live Document as a history entry. No-op if it equals the current entry."""
        if self._cursor >= 0 and self._history[self._cursor] == self._document:
            return False
        if self._cursor == -1:
            self._seed_history()
            if self._document == self._baseline:
                return True
        self._push(self._document)
        return True

    # --- History navigation ----------------------------------------------------

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._cursor -= 1
        self._restore(self._history[self._cursor])
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._cursor += 1
        self._restore(self._history[self._cursor])
        return True

    def load_state(self, document: Document) -> Document:
        """Replace the live Document and reset history to a single entry."""
        sanitized = sanitize_document(document)
        self._document = sanitized
        self._history = [sanitized]
        self._cursor = 0
        self._selected_id = None
        return sanitized

    def reset(self) -> None:
        """Blank canvas, empty history (cursor back to -1)."""
        self._document = Document()
        self._baseline = self._document
        self._history = []
        self._cursor = -1
        self._selected_id = None

    # --- Internals -----------------------------------------------------------

    def _commit(self, next_document: Document) -> None:
        if self._cursor == -1:
            self._seed_history()
        self._push(next_document)
        self._document = next_document

    def _seed_history(self) -> None:
        # Entry 0 is the document the engine started from, not the edited one.
        self._history = [self._baseline]
        self._cursor = 0

    def _push(self, entry: Document) -> None:
        del self._history[self._cursor + 1:]
        self._history.append(entry)
        self._cursor = len(self._history) - 1

    def _restore(self, entry: Document) -> None:
        self._document = entry
        if self._selected_id is not None and entry.find(self._selected_id) is None:
            self._selected_id = None
