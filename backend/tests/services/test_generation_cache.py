"""Generation Cache — tests for TTL expiry, upsert and purge against SQLite.

Invariants:
    - An expired row is a logical miss while it is still physically present
    - put on an existing fingerprint replaces the payload and the expiry
"""

from datetime import timedelta

from sqlalchemy import func, select

from thumbnail_ai.core.domain_types import CacheType
from thumbnail_ai.models.cache_entry import CacheEntry
from thumbnail_ai.services.generation_cache import GenerationCache, SqlCacheRepository

KEY = "a" * 64


async def _row_count(db) -> int:
    return (await db.execute(select(func.count()).select_from(CacheEntry))).scalar_one()


async def test_miss_then_hit(test_db, clock):
    cache = GenerationCache(SqlCacheRepository(test_db), clock)
    assert await cache.get(KEY) is None
    await cache.put(KEY, CacheType.IMAGE_GENERATION, {"imageUrl": "u1"}, 168)
    assert await cache.get(KEY) == {"imageUrl": "u1"}


async def test_entry_expires_but_row_remains(test_db, clock):
    cache = GenerationCache(SqlCacheRepository(test_db), clock)
    await cache.put(KEY, CacheType.LLM_RESPONSE, {"headline": "H"}, 24)

    clock.advance(23.9)
    assert await cache.get(KEY) == {"headline": "H"}
    clock.advance(0.1)
    assert await cache.get(KEY) is None
    assert await _row_count(test_db) == 1


async def test_put_replaces_payload_and_expiry(test_db, clock):
    cache = GenerationCache(SqlCacheRepository(test_db), clock)
    await cache.put(KEY, CacheType.IMAGE_GENERATION, {"imageUrl": "old"}, 1)
    clock.advance(2)
    assert await cache.get(KEY) is None

    expires_at = await cache.put(KEY, CacheType.IMAGE_GENERATION, {"imageUrl": "new"}, 1)
    assert expires_at == clock.now + timedelta(hours=1)
    assert await cache.get(KEY) == {"imageUrl": "new"}
    assert await _row_count(test_db) == 1


async def test_purge_removes_only_dead_rows(test_db, clock):
    cache = GenerationCache(SqlCacheRepository(test_db), clock)
    await cache.put("b" * 64, CacheType.LLM_RESPONSE, {"headline": "short"}, 1)
    await cache.put("c" * 64, CacheType.IMAGE_GENERATION, {"imageUrl": "long"}, 48)
    clock.advance(2)

    assert await cache.purge_expired() == 1
    assert await _row_count(test_db) == 1
    assert await cache.get("c" * 64) == {"imageUrl": "long"}
