"""Project Schemas — request/response models for the project store endpoints.

Invariants:
    - ProjectCreate.name: stripped; blank -> None (the store applies the default name)
    - ProjectUpdate carries only the fields the caller set (model_dump(exclude_unset=True))
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ProjectCreate(BaseModel):
    """Project creation. Every field optional; canvas_state is a Document snapshot."""
    name: str | None = Field(None, max_length=200)
    video_title: str | None = Field(None, max_length=500)
    canvas_state: dict | None = None
    thumbnail_url: str | None = Field(None, max_length=2048)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


class ProjectUpdate(BaseModel):
    """Partial project update."""
    name: str | None = Field(None, min_length=1, max_length=200)
    video_title: str | None = Field(None, max_length=500)
    canvas_state: dict | None = None
    thumbnail_url: str | None = Field(None, max_length=2048)


class ProjectResponse(BaseModel):
    id: UUID
    owner_id: str
    name: str
    video_title: str | None = None
    canvas_state: dict | None = None
    thumbnail_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    limit: int
    offset: int
