"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      except LocalStorage, which models synchronous client-side key-value storage
    - Failures cross these boundaries as ThumbnailError subclasses (StorageError,
      DatabaseError, ExternalGenerationError); services wrap them into Outcome
"""

from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from thumbnail_ai.core.domain_types import (
    AccountId, AspectRatio, CacheType, Fingerprint, TrialSessionId,
)
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.trial_session import TransferResult, TrialValidation


class ProjectRepository(Protocol):
    """Owner-scoped persistent store of Document blobs keyed by project id."""
    async def create(
        self, owner_id: AccountId, name: str,
        canvas_state: dict | None = None, video_title: str | None = None,
    ) -> dict: ...
    async def get(self, project_id: UUID, owner_id: AccountId) -> dict | None: ...
    async def list_for_owner(self, owner_id: AccountId) -> list[dict]: ...
    async def update(
        self, project_id: UUID, owner_id: AccountId, **fields: Any,
    ) -> dict | None: ...
    async def delete(self, project_id: UUID, owner_id: AccountId) -> bool: ...


class CacheRepository(Protocol):
    """Raw cache row access; liveness rules live in GenerationCache."""
    async def fetch(self, cache_key: Fingerprint) -> tuple[Any, datetime] | None: ...
    async def upsert(
        self, cache_key: Fingerprint, cache_type: CacheType, data: Any,
        created_at: datetime, expires_at: datetime,
    ) -> None: ...
    async def delete_expired(self, now: datetime) -> int: ...


class TrialAuthority(Protocol):
    """Remote, authoritative view of a trial identity."""
    async def validate(self, session_id: TrialSessionId) -> TrialValidation: ...
    async def sync(
        self, session_id: TrialSessionId, generations_used: int,
        asset_ref: str | None = None,
    ) -> int: ...
    async def record_generation(
        self, session_id: TrialSessionId, generation_key: str,
        asset_ref: str | None = None,
        text_suggestions: TextSuggestions | None = None,
    ) -> int: ...
    async def convert(
        self, session_id: TrialSessionId, account_id: AccountId,
        document_snapshot: dict | None = None,
    ) -> TransferResult: ...


class LocalStorage(Protocol):
    """Client-side key-value storage holding JSON-safe values."""
    def get_item(self, key: str) -> Any | None: ...
    def set_item(self, key: str, value: Any) -> None: ...
    def remove_item(self, key: str) -> None: ...


class ImageGenerator(Protocol):
    """External image generator: prompt + aspect ratio -> asset reference (URL)."""
    async def generate(self, prompt: str, aspect_ratio: AspectRatio) -> str: ...


class TextSuggestionGenerator(Protocol):
    """External structured-text generator."""
    async def suggest(self, prompt: str) -> TextSuggestions: ...
