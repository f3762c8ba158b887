"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - No foreign keys between tables: guest_sessions.converted_project_id is a soft link

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from thumbnail_ai.models.project import Project  # noqa: F401
from thumbnail_ai.models.guest_session import GuestSession  # noqa: F401
from thumbnail_ai.models.cache_entry import CacheEntry  # noqa: F401
