"""Editor Schemas — request/response models for the live editing session routes.

Invariants:
    - LayerCreate.kind is validated by the engine (text, image or a shape name);
      an unknown kind surfaces as VALIDATION_ERROR, not a pydantic error
    - TransformRequest requires at least one geometry field
    - EditorStateResponse.document is the camelCase snapshot format

Design Decisions:
    - LayerUpdate.checkpoint lets a client coalesce a drag or a typing burst into one
      history entry: send intermediate updates with checkpoint=false, the last with true
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from thumbnail_ai.core.domain_types import Direction


class LayerCreate(BaseModel):
    kind: str = Field(min_length=1, max_length=32)
    overrides: dict[str, Any] = Field(default_factory=dict)


class LayerUpdate(BaseModel):
    fields: dict[str, Any]
    checkpoint: bool = False


class TransformRequest(BaseModel):
    """Direct manipulation: geometry only. Locked layers reject it."""
    x: float | None = None
    y: float | None = None
    width: float | None = Field(None, gt=0)
    height: float | None = Field(None, gt=0)
    rotation: float | None = None
    scale_x: float | None = None
    scale_y: float | None = None
    checkpoint: bool = True

    @model_validator(mode="after")
    def require_geometry(self):
        if not self.geometry():
            raise ValueError("transform requires at least one geometry field")
        return self

    def geometry(self) -> dict[str, float]:
        return self.model_dump(exclude_none=True, exclude={"checkpoint"})


class MoveRequest(BaseModel):
    direction: Direction


class SelectRequest(BaseModel):
    layer_id: str | None = None


class EditorStateResponse(BaseModel):
    """Live editor state: the Document plus selection and history position."""
    project_id: UUID
    document: dict
    selected_layer_id: str | None = None
    can_undo: bool
    can_redo: bool
    history_length: int
    cursor: int


class LayerCreatedResponse(EditorStateResponse):
    layer_id: str
