"""Generation Cache — content-addressed store of generation results with per-entry TTL.

Invariants:
    - get returns a payload only while now < expires_at; an expired row is a logical
      miss but stays physically present until purge_expired
    - put is an upsert on the fingerprint: payload, created_at and expires_at are all
      replaced, never a duplicate-key error
    - TTL is chosen by the caller per request type, never hardcoded here
    - Nothing is written before the external call resolves (callers put only on success)

Design Decisions:
    - GenerationCache (rules, clock) over CacheRepository (rows): the expiry rule is
      testable with a simulated clock and any repository
    - Upsert is select-then-insert/update inside one session; two concurrent identical
      misses may both insert, and the unique constraint turns the loser into an update
      retry (see SqlCacheRepository.upsert)
"""

import logging
from datetime import datetime
from typing import Any, Callable

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from thumbnail_ai.core.cache_key import ensure_utc, expiry_for, is_live
from thumbnail_ai.core.domain_types import CacheType, Fingerprint
from thumbnail_ai.core.repository_protocols import CacheRepository
from thumbnail_ai.core.trial_session import utc_now
from thumbnail_ai.infrastructure.database import map_db_error
from thumbnail_ai.models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)


class SqlCacheRepository:
    """CacheRepository over the cache_entries table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def fetch(self, cache_key: Fingerprint) -> tuple[Any, datetime] | None:
        try:
            result = await self.db.execute(
                select(CacheEntry.data, CacheEntry.expires_at)
                .where(CacheEntry.cache_key == cache_key),
            )
        except SQLAlchemyError as e:
            raise map_db_error(e, "cache_fetch")
        row = result.first()
        if row is None:
            return None
        return row.data, ensure_utc(row.expires_at)

    async def upsert(
        self, cache_key: Fingerprint, cache_type: CacheType, data: Any,
        created_at: datetime, expires_at: datetime,
    ) -> None:
        try:
            await self._write(cache_key, cache_type, data, created_at, expires_at)
            await self.db.commit()
        except IntegrityError:
            # Lost an insert race on cache_key: the row exists now, so update it.
            await self.db.rollback()
            try:
                await self._write(cache_key, cache_type, data, created_at, expires_at)
                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise map_db_error(e, "cache_upsert")
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "cache_upsert")

    async def delete_expired(self, now: datetime) -> int:
        try:
            result = await self.db.execute(
                delete(CacheEntry).where(CacheEntry.expires_at <= now),
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise map_db_error(e, "cache_purge")
        return result.rowcount or 0

    async def _write(
        self, cache_key: Fingerprint, cache_type: CacheType, data: Any,
        created_at: datetime, expires_at: datetime,
    ) -> None:
        result = await self.db.execute(
            select(CacheEntry).where(CacheEntry.cache_key == cache_key),
        )
        entry = result.scalar_one_or_none()
        if entry is None:
            self.db.add(CacheEntry(
                cache_key=cache_key, cache_type=cache_type.value, data=data,
                created_at=created_at, expires_at=expires_at,
            ))
        else:
            entry.cache_type = cache_type.value
            entry.data = data
            entry.created_at = created_at
            entry.expires_at = expires_at
        await self.db.flush()


class GenerationCache:
    """Expiry rules over a CacheRepository, with an injectable clock."""

    def __init__(
        self,
        repository: CacheRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.repository = repository
        self.clock = clock

    async def get(self, fingerprint: Fingerprint) -> Any | None:
        found = await self.repository.fetch(fingerprint)
        if found is None:
            logger.debug("Cache miss", extra={"fingerprint": fingerprint, "cache_hit": False})
            return None
        payload, expires_at = found
        if not is_live(expires_at, self.clock()):
            logger.debug(
                "Cache entry expired", extra={"fingerprint": fingerprint, "cache_hit": False},
            )
            return None
        logger.info("Cache hit", extra={"fingerprint": fingerprint, "cache_hit": True})
        return payload

    async def put(
        self, fingerprint: Fingerprint, cache_type: CacheType, payload: Any,
        ttl_hours: float,
    ) -> datetime:
        """Upsert payload; returns the new expiry."""
        now = ensure_utc(self.clock())
        expires_at = expiry_for(now, ttl_hours)
        await self.repository.upsert(fingerprint, cache_type, payload, now, expires_at)
        return expires_at

    async def purge_expired(self) -> int:
        removed = await self.repository.delete_expired(ensure_utc(self.clock()))
        if removed:
            logger.info(f"Purged {removed} expired cache entries")
        return removed
