"""Project ORM — a saved thumbnail: owner, metadata, and its Document snapshot.

Invariants:
    - id is UUID primary key
    - owner_id is the identity provider's account id; every read is owner-scoped
    - canvas_state holds document_to_snapshot() output (or NULL for an empty project)
    - updated_at moves on every update

Design Decisions:
    - JSON column for canvas_state: the Document is an opaque blob to the store
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from thumbnail_ai.db.base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Project(Base):
    """Project row, one per saved thumbnail."""
    __tablename__ = "projects"
    __table_args__ = (Index("ix_projects_owner_id", "owner_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    video_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    canvas_state: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utc_now,
        onupdate=_utc_now,
    )
