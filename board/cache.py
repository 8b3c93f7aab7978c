import json
import logging

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from board.config import settings

logger = logging.getLogger(__name__)

ARTICLE_LIST_PATTERN = "articles:list:*"
HASHTAG_NAMES_KEY = "hashtags:names"

# Session.info key holding the cache entries a transaction made stale.
_PENDING_INVALIDATIONS = "cache_invalidations"


def article_detail_key(article_id: int) -> str:
    return f"articles:detail:{article_id}"


def _pending(db: AsyncSession) -> set[str]:
    return db.info.setdefault(_PENDING_INVALIDATIONS, set())


class CacheManager:
    """
    Cache-aside store in front of the board's read endpoints.

    Redis is optional.  Without a connection every read is a miss and every
    write is skipped; Redis errors are logged and swallowed so a cache
    outage never fails a request.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, running without cache: %s", exc)
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        """Return the decoded value for *key*, or None on a miss or error."""
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._redis.get(key)
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(data)

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def delete(self, *keys: str) -> None:
        if not self._redis or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except Exception as exc:
            logger.debug("Cache DELETE error for keys=%r: %s", keys, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Delete every key matching *pattern* (SCAN, never KEYS)."""
        if not self._redis:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
        except Exception as exc:
            logger.debug("Cache DELETE_PATTERN error for pattern=%r: %s", pattern, exc)

    # ------------------------------------------------------------------
    # Board invalidation
    # ------------------------------------------------------------------
    #
    # Writes record stale entries on the session; they are purged by
    # ``apply_pending_invalidations`` only after that session commits.

    def invalidate_article(self, db: AsyncSession, article_id: int | None = None) -> None:
        """
        Schedule everything an article write can make stale: every list
        page, the hashtag name list (content edits add and remove hashtags)
        and, when given, the detail entry of *article_id*.
        """
        pending = _pending(db)
        pending.update((ARTICLE_LIST_PATTERN, HASHTAG_NAMES_KEY))
        if article_id is not None:
            pending.add(article_detail_key(article_id))

    def invalidate_comments(self, db: AsyncSession, article_id: int) -> None:
        """Comments only show up on the article detail view."""
        _pending(db).add(article_detail_key(article_id))

    async def apply_pending_invalidations(self, db: AsyncSession) -> None:
        """Purge the entries scheduled on *db*; call after a commit."""
        pending = db.info.pop(_PENDING_INVALIDATIONS, set())
        patterns = sorted(entry for entry in pending if "*" in entry)
        keys = sorted(entry for entry in pending if "*" not in entry)
        for pattern in patterns:
            await self.delete_pattern(pattern)
        await self.delete(*keys)

    def discard_pending_invalidations(self, db: AsyncSession) -> None:
        """Forget scheduled entries; the writes that made them stale rolled back."""
        db.info.pop(_PENDING_INVALIDATIONS, None)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


cache = CacheManager()
