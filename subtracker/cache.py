import json
import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "subscriptions"


def cache_key(kind: str, *parts) -> str:
    """Build ``subscriptions:<kind>:<part>:...``; parts are stringified."""
    return ":".join([KEY_PREFIX, kind, *(str(p) for p in parts)])


class CacheManager:
    """
    JSON-over-Redis store used by the cached repository.

    When no client is attached (never connected, ping failed, or tests
    clearing ``_redis``) every read is a miss and every write is a no-op.
    Redis failures during a request are counted and logged at debug
    level; they never reach the caller.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits = 0
        self._misses = 0
        self._errors = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self, url: str, timeout: float = 2.0) -> None:
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            logger.warning("Redis unreachable at %s, caching disabled: %s", url, exc)
            await client.aclose()
            return
        self._redis = client
        logger.info("Redis connected: %s", url)

    async def disconnect(self) -> None:
        client, self._redis = self._redis, None
        if client is not None:
            await client.aclose()

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    # ------------------------------------------------------------------
    # Reads and writes
    # ------------------------------------------------------------------

    async def get(self, key: str):
        """Decoded JSON stored under *key*, or None on a miss or failure."""
        raw = None
        if self._redis is not None:
            try:
                raw = await self._redis.get(key)
            except RedisError as exc:
                self._fail("GET", key, exc)
        if raw is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(raw)

    async def set(self, key: str, value, ttl: int | None = None) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.set(key, json.dumps(value), ex=ttl)
        except (RedisError, TypeError, ValueError) as exc:
            self._fail("SET", key, exc)

    async def purge(self, *patterns: str) -> int:
        """
        Remove every key matching any of *patterns* (SCAN, never KEYS).

        Plain keys are valid patterns.  Returns the number of keys removed.
        """
        if self._redis is None or not patterns:
            return 0
        doomed: set[str] = set()
        try:
            for pattern in patterns:
                async for key in self._redis.scan_iter(match=pattern):
                    doomed.add(key)
            if doomed:
                await self._redis.delete(*doomed)
        except RedisError as exc:
            self._fail("PURGE", patterns, exc)
            return 0
        logger.debug("Cache purged %d key(s) for %r", len(doomed), patterns)
        return len(doomed)

    async def invalidate_subscription(self, subscription_id=None) -> None:
        """
        Drop cached lists and summaries, plus the detail entry of
        *subscription_id* when given.  Any write can change a list or a
        total, so those always go.
        """
        patterns = [cache_key("list", "*"), cache_key("summary", "*")]
        if subscription_id is not None:
            patterns.append(cache_key("detail", subscription_id))
        await self.purge(*patterns)

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def _fail(self, op: str, target, exc: Exception) -> None:
        self._errors += 1
        logger.debug("Cache %s failed for %r: %s", op, target, exc)

    @property
    def stats(self) -> dict:
        lookups = self._hits + self._misses
        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "errors": self._errors,
            "hit_rate": round(self._hits / lookups * 100, 1) if lookups else 0.0,
        }


# Shared by every request; the application lifespan connects and
# disconnects it.
cache = CacheManager()
