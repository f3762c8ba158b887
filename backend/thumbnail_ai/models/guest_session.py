"""GuestSession ORM — the remote, authoritative record of an anonymous trial identity.

Invariants:
    - id is the client-generated trial session id ("session_<uuid4>")
    - generations_used never decreases once stored
    - expires_at is fixed at first insert (created_at + 24h); later syncs never extend it
    - converted_to_user is written at most once (conditional update WHERE IS NULL)

Design Decisions:
    - String primary key: the identity is minted client-side before any server call
    - text_suggestions as JSON: small, read back whole at transfer time
    - converted_project_id stored next to the claim so a repeated transfer can report it
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from thumbnail_ai.db.base import Base


class GuestSession(Base):
    """Remote mirror of a trial session."""
    __tablename__ = "guest_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    generations_used: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    asset_ref: Mapped[str | None] = mapped_column(Text, nullable=True)
    text_suggestions: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    last_generation_key: Mapped[str | None] = mapped_column(
        String(64), nullable=True,
    )
    converted_to_user: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    converted_project_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
