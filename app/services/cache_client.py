"""Fail-soft Redis key-value client shared by the whole process.

Every read or write degrades to its empty result (``None``, ``False`` or
``0``) when Redis is unreachable, so callers only ever see a cache miss.
"""

from __future__ import annotations

import logging
import time

import redis.asyncio as redis

logger = logging.getLogger(__name__)

RECONNECT_INTERVAL_SECONDS = 5.0


class CacheClient:
    def __init__(
        self,
        url: str,
        *,
        default_ttl: int = 3600,
        socket_timeout: float = 5.0,
        client: redis.Redis | None = None,
    ) -> None:
        self.url = url
        self.default_ttl = default_ttl
        self.socket_timeout = socket_timeout
        self._redis = client
        self._ready = False
        self._retry_at = 0.0

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def connect(self) -> bool:
        if self._ready:
            return True
        if self._redis is None:
            self._redis = redis.from_url(
                self.url,
                decode_responses=True,
                socket_timeout=self.socket_timeout,
                socket_connect_timeout=self.socket_timeout,
            )
        try:
            await self._redis.ping()
        except Exception:
            logger.warning("Failed to connect to Redis at %s", self.url, exc_info=True)
            self._mark_unavailable()
            return False
        self._ready = True
        logger.info("Redis client ready (%s)", self.url)
        return True

    async def disconnect(self) -> None:
        if self._redis is None:
            return
        try:
            await self._redis.aclose()
            logger.info("Redis client disconnected")
        except Exception:
            logger.warning("Failed to disconnect from Redis", exc_info=True)
        finally:
            self._redis = None
            self._ready = False

    def is_ready(self) -> bool:
        return self._ready

    async def _available(self) -> bool:
        """Fast-fail while unavailable, retrying the connection at most every few seconds."""
        if self._ready:
            return True
        if self._redis is None or time.monotonic() < self._retry_at:
            return False
        return await self.connect()

    def _mark_unavailable(self) -> None:
        self._ready = False
        self._retry_at = time.monotonic() + RECONNECT_INTERVAL_SECONDS

    # ── Operations ────────────────────────────────────────────────────────────

    async def get(self, key: str) -> str | None:
        if not await self._available():
            logger.debug("Redis not connected, skipping cache get")
            return None
        try:
            return await self._redis.get(key)
        except Exception:
            logger.warning("Failed to get key %s from Redis", key, exc_info=True)
            self._mark_unavailable()
            return None

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        if not await self._available():
            logger.debug("Redis not connected, skipping cache set")
            return False
        try:
            await self._redis.set(key, value, ex=ttl or self.default_ttl)
            return True
        except Exception:
            logger.warning("Failed to set key %s in Redis", key, exc_info=True)
            self._mark_unavailable()
            return False

    async def delete(self, key: str) -> bool:
        if not await self._available():
            logger.debug("Redis not connected, skipping cache delete")
            return False
        try:
            return await self._redis.delete(key) > 0
        except Exception:
            logger.warning("Failed to delete key %s from Redis", key, exc_info=True)
            self._mark_unavailable()
            return False

    async def delete_by_prefix(self, pattern: str) -> int:
        """Delete every key matching a glob pattern such as ``drug_indication:*``.

        Keys are listed with SCAN and then deleted in one call; a key written
        between the two steps may survive until its TTL expires.
        """
        if not await self._available():
            logger.debug("Redis not connected, skipping cache pattern delete")
            return 0
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if not keys:
                return 0
            return await self._redis.delete(*keys)
        except Exception:
            logger.warning("Failed to delete pattern %s from Redis", pattern, exc_info=True)
            self._mark_unavailable()
            return 0

    async def exists(self, key: str) -> bool:
        if not await self._available():
            return False
        try:
            return await self._redis.exists(key) == 1
        except Exception:
            logger.warning("Failed to check existence of key %s in Redis", key, exc_info=True)
            self._mark_unavailable()
            return False

    async def flush_all(self) -> bool:
        if not await self._available():
            logger.debug("Redis not connected, skipping flush")
            return False
        try:
            await self._redis.flushdb()
            return True
        except Exception:
            logger.warning("Failed to flush Redis", exc_info=True)
            self._mark_unavailable()
            return False
