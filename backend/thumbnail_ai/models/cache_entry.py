"""CacheEntry ORM — content-addressed generation results.

Invariants:
    - cache_key (fingerprint) is unique: one live payload per request
    - expires_at > created_at
    - Expired rows may remain physically present until purge_expired runs

Design Decisions:
    - Surrogate UUID id plus unique cache_key: upsert targets cache_key
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from thumbnail_ai.db.base import Base


class CacheEntry(Base):
    __tablename__ = "cache_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    cache_key: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True,
    )
    cache_type: Mapped[str] = mapped_column(String(32), nullable=False)
    data: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True,
    )
