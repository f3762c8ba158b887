"""Test doubles for the generation and trial boundaries.

Each fake records its calls so tests can assert on what crossed the boundary.
"""

from datetime import datetime
from typing import Any

from thumbnail_ai.core.domain_types import MAX_FREE_GENERATIONS
from thumbnail_ai.core.errors import ExternalGenerationError, StorageError
from thumbnail_ai.core.generation_types import TextSuggestions
from thumbnail_ai.core.trial_session import TransferResult, TrialValidation


class FakeImageGenerator:
    def __init__(self, url: str = "https://img.test/1.png", error: Exception | None = None):
        self.url = url
        self.error = error
        self.calls: list[tuple[str, Any]] = []

    async def generate(self, prompt, aspect_ratio):
        self.calls.append((prompt, aspect_ratio))
        if self.error is not None:
            raise self.error
        return self.url


class FakeTextGenerator:
    def __init__(
        self, suggestions: TextSuggestions | None = None, error: Exception | None = None,
    ):
        self.suggestions = suggestions or TextSuggestions("LEARN FAST", "in one hour")
        self.error = error
        self.calls: list[str] = []

    async def suggest(self, prompt):
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self.suggestions


class DictCacheRepository:
    """CacheRepository over a dict: {key: (data, expires_at)}."""

    def __init__(self):
        self.rows: dict[str, tuple[Any, datetime]] = {}
        self.types: dict[str, str] = {}

    async def fetch(self, cache_key):
        return self.rows.get(cache_key)

    async def upsert(self, cache_key, cache_type, data, created_at, expires_at):
        self.rows[cache_key] = (data, expires_at)
        self.types[cache_key] = cache_type.value

    async def delete_expired(self, now):
        dead = [k for k, (_, expires_at) in self.rows.items() if expires_at <= now]
        for key in dead:
            del self.rows[key]
        return len(dead)


class FailingCacheRepository:
    async def fetch(self, cache_key):
        raise StorageError("cache down", "cache_fetch")

    async def upsert(self, cache_key, cache_type, data, created_at, expires_at):
        raise StorageError("cache down", "cache_upsert")

    async def delete_expired(self, now):
        raise StorageError("cache down", "cache_purge")


class FakeTrialAuthority:
    """In-memory authority; set `down` to make every call raise StorageError."""

    def __init__(self, used: int = 0, converted_to: str | None = None, down: bool = False):
        self.used = used
        self.converted_to = converted_to
        self.down = down
        self.last_key: str | None = None
        self.validate_calls = 0
        self.record_calls: list[str] = []
        self.convert_calls: list[tuple] = []
        self.convert_result = TransferResult(
            transferred=True, project_id="proj-1", converted_to="acct_owner",
        )

    def _check(self):
        if self.down:
            raise StorageError("authority unreachable", "trial_validate")

    async def validate(self, session_id):
        self.validate_calls += 1
        self._check()
        if self.converted_to:
            return TrialValidation(False, 0, self.converted_to, "Session already used")
        remaining = max(0, MAX_FREE_GENERATIONS - self.used)
        return TrialValidation(
            remaining > 0, remaining, None,
            None if remaining else "Free generation already used",
        )

    async def sync(self, session_id, generations_used, asset_ref=None):
        self._check()
        self.used = max(self.used, generations_used)
        return self.used

    async def record_generation(
        self, session_id, generation_key, asset_ref=None, text_suggestions=None,
    ):
        self.record_calls.append(generation_key)
        self._check()
        if generation_key != self.last_key:
            self.used += 1
            self.last_key = generation_key
        return self.used

    async def convert(self, session_id, account_id, document_snapshot=None):
        self.convert_calls.append((session_id, account_id, document_snapshot))
        self._check()
        return self.convert_result


def provider_error(kind: str = "timeout") -> ExternalGenerationError:
    return ExternalGenerationError("provider failed", kind)
