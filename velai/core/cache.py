"""Redis cache manager keyed by owner id, with connection pooling and retry logic."""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

import redis
from redis.connection import ConnectionPool
from redis.exceptions import RedisError, ConnectionError, TimeoutError
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from velai.config import Settings

logger = logging.getLogger(__name__)


def owner_key(namespace: str, owner_id: Any) -> str:
    """Build the cache key for one owner's data, e.g. ``owner:<id>:documents``."""
    return f"owner:{owner_id}:{namespace}"


class CacheManager:
    """
    Redis cache for per-owner read models (document lists, application lists).

    Every key belongs to exactly one owner (see ``owner_key``), so all cached
    data for an owner can be purged at once with ``invalidate_owner`` after a
    mutation or when the acting owner changes. Redis failures degrade to
    "no cache": reads miss and writes are skipped, callers never see them.
    """

    def __init__(self, settings: Settings):
        """Initialize cache manager with settings."""
        self.settings = settings
        self.enabled = settings.CACHE_ENABLED
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._is_connected = False

        logger.info(f"CacheManager initialized. Enabled: {self.enabled}")

    def connect(self) -> None:
        """Establish Redis connection with connection pooling."""
        if not self.enabled:
            logger.info("Cache is disabled. Skipping Redis connection.")
            return

        try:
            self._pool = ConnectionPool(
                host=self.settings.REDIS_HOST,
                port=self.settings.REDIS_PORT,
                db=self.settings.REDIS_DB,
                password=self.settings.REDIS_PASSWORD or None,
                max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                socket_keepalive=self.settings.REDIS_SOCKET_KEEPALIVE,
                socket_timeout=self.settings.REDIS_SOCKET_TIMEOUT,
                retry_on_timeout=self.settings.REDIS_RETRY_ON_TIMEOUT,
                health_check_interval=self.settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            self._client.ping()
            self._is_connected = True

            logger.info(
                f"Redis cache connected to {self.settings.REDIS_HOST}:{self.settings.REDIS_PORT}"
            )

        except Exception as e:
            logger.error(f"Failed to connect to Redis cache: {e}")
            logger.warning("Cache will operate in degraded mode (no caching)")
            self._is_connected = False
            self.enabled = False

    def disconnect(self) -> None:
        """Close Redis connection and cleanup resources."""
        if self._client:
            try:
                self._client.close()
                logger.info("Redis cache connection closed")
            except Exception as e:
                logger.error(f"Error closing Redis connection: {e}")

        if self._pool:
            try:
                self._pool.disconnect()
            except Exception as e:
                logger.error(f"Error disconnecting Redis pool: {e}")

        self._is_connected = False

    def is_healthy(self) -> bool:
        """Check if Redis connection is healthy."""
        if not self.enabled or not self._client:
            return False

        try:
            self._client.ping()
            return True
        except RedisError:
            return False

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    def _raw_get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value (deserialized from JSON) or None if not found/error
        """
        if not self.enabled or not self._client:
            return None

        try:
            value = self._raw_get(key)
        except RedisError as e:
            logger.warning(f"Redis error getting key '{key}': {e}. Continuing without cache.")
            return None

        if value is None:
            logger.debug(f"Cache MISS: {key}")
            return None

        try:
            logger.debug(f"Cache HIT: {key}")
            return json.loads(value)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to deserialize cached value for key '{key}': {e}")
            self.delete(key)
            return None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((ConnectionError, TimeoutError)),
        reraise=True,
    )
    def _raw_setex(self, key: str, ttl: int, value: str) -> bool:
        return bool(self._client.setex(key, ttl, value))

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache with optional TTL (seconds, default CACHE_DEFAULT_TTL).

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled or not self._client:
            return False

        ttl = ttl or self.settings.CACHE_DEFAULT_TTL
        try:
            serialized_value = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize value for key '{key}': {e}")
            return False

        try:
            result = self._raw_setex(key, ttl, serialized_value)
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return result
        except RedisError as e:
            logger.warning(f"Redis error setting key '{key}': {e}. Continuing without cache.")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.enabled or not self._client:
            return False

        try:
            result = self._client.delete(key)
            logger.debug(f"Cache DELETE: {key}")
            return bool(result)
        except RedisError as e:
            logger.error(f"Redis error deleting key '{key}': {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern.

        Args:
            pattern: Redis key pattern (e.g., "owner:123:*")

        Returns:
            Number of keys deleted
        """
        if not self.enabled or not self._client:
            return 0

        try:
            deleted_count = 0
            for key in self._client.scan_iter(match=pattern, count=100):
                self._client.delete(key)
                deleted_count += 1

            logger.info(f"Cache DELETE PATTERN: {pattern} ({deleted_count} keys)")
            return deleted_count
        except RedisError as e:
            logger.error(f"Redis error deleting pattern '{pattern}': {e}")
            return 0

    def invalidate_owner(self, owner_id: Any) -> int:
        """Purge everything cached for one owner."""
        return self.delete_pattern(owner_key("*", owner_id))

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[int] = None,
    ) -> Any:
        """
        Read-through helper for async loaders.

        Loader errors propagate; only cache failures are swallowed.
        """
        cached_value = self.get(key)
        if cached_value is not None:
            return cached_value

        value = await loader()
        if value is not None:
            self.set(key, value, ttl)
        return value

    def get_stats(self) -> dict:
        """Get cache statistics."""
        if not self.enabled or not self._client:
            return {
                "enabled": False,
                "connected": False,
            }

        try:
            info = self._client.info("stats")
            keyspace = self._client.info("keyspace")
            db_info = keyspace.get(f"db{self.settings.REDIS_DB}", {})
            hits = info.get("keyspace_hits", 0)
            misses = info.get("keyspace_misses", 0)

            return {
                "enabled": True,
                "connected": self._is_connected,
                "keys": db_info.get("keys", 0),
                "keyspace_hits": hits,
                "keyspace_misses": misses,
                "hit_rate": hits / (hits + misses) if (hits + misses) > 0 else 0,
            }
        except RedisError as e:
            logger.error(f"Error getting cache stats: {e}")
            return {
                "enabled": True,
                "connected": False,
                "error": str(e),
            }


# Singleton instance (initialized by main.py)
_cache_manager_instance: Optional[CacheManager] = None


def get_cache_manager() -> Optional[CacheManager]:
    """Get the global cache manager instance."""
    return _cache_manager_instance


def set_cache_manager(manager: CacheManager) -> None:
    """Set the global cache manager instance."""
    global _cache_manager_instance
    _cache_manager_instance = manager
