"""Redis read-through cache for drug indications.

Reads return ``None`` on a miss, on a Redis outage and on a corrupted
entry alike; the caller falls back to the database in every case.
Invalidation is narrow (by id and drug) after update/delete and covers the
whole namespace after a create.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from app.services import cache_keys
from app.services.cache_client import CacheClient

logger = logging.getLogger(__name__)


class IndicationCache:
    def __init__(self, client: CacheClient, prefix: str = cache_keys.DEFAULT_PREFIX) -> None:
        self.client = client
        self.prefix = prefix

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _read(self, key: str, expected: type) -> Any | None:
        try:
            raw = await self.client.get(key)
            if raw is None:
                logger.debug("Cache miss for %s", key)
                return None
            value = json.loads(raw)
        except Exception:
            logger.warning("Discarding unreadable cache entry %s", key, exc_info=True)
            return None
        if not isinstance(value, expected):
            logger.warning(
                "Discarding cache entry %s: expected %s, got %s", key, expected.__name__, type(value).__name__
            )
            return None
        logger.debug("Cache hit for %s", key)
        return value

    async def _write(self, key: str, payload: Any) -> bool:
        try:
            stored = await self.client.set(key, json.dumps(payload, default=str))
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)
            return False
        if stored:
            logger.debug("Cached %s", key)
        return stored

    async def _drop(self, key: str) -> None:
        try:
            await self.client.delete(key)
            logger.debug("Invalidated %s", key)
        except Exception:
            logger.warning("Cache invalidation failed for %s", key, exc_info=True)

    # ── By id ─────────────────────────────────────────────────────────────────

    async def get_by_id(self, indication_id: str) -> dict | None:
        return await self._read(cache_keys.by_id(indication_id, self.prefix), dict)

    async def set_by_id(self, indication_id: str, indication: dict) -> bool:
        return await self._write(cache_keys.by_id(indication_id, self.prefix), indication)

    # ── By drug ───────────────────────────────────────────────────────────────

    async def get_by_drug(self, drug: str) -> list[dict] | None:
        return await self._read(cache_keys.by_drug(drug, self.prefix), list)

    async def set_by_drug(self, drug: str, indications: list[dict]) -> bool:
        return await self._write(cache_keys.by_drug(drug, self.prefix), indications)

    # ── By ICD-10 code ────────────────────────────────────────────────────────

    async def get_by_icd10(self, code: str) -> list[dict] | None:
        return await self._read(cache_keys.by_icd10(code, self.prefix), list)

    async def set_by_icd10(self, code: str, indications: list[dict]) -> bool:
        return await self._write(cache_keys.by_icd10(code, self.prefix), indications)

    # ── Free-text search ──────────────────────────────────────────────────────

    async def get_search(self, query: str) -> list[dict] | None:
        return await self._read(cache_keys.search(query, self.prefix), list)

    async def set_search(self, query: str, indications: list[dict]) -> bool:
        return await self._write(cache_keys.search(query, self.prefix), indications)

    # ── Paginated list ────────────────────────────────────────────────────────

    async def get_list(self, filters: Mapping[str, Any]) -> dict | None:
        return await self._read(cache_keys.list_key(filters, self.prefix), dict)

    async def set_list(self, filters: Mapping[str, Any], result: dict) -> bool:
        return await self._write(cache_keys.list_key(filters, self.prefix), result)

    # ── Stats ─────────────────────────────────────────────────────────────────

    async def get_stats(self) -> dict | None:
        return await self._read(cache_keys.stats(self.prefix), dict)

    async def set_stats(self, stats: dict) -> bool:
        return await self._write(cache_keys.stats(self.prefix), stats)

    # ── Invalidation ──────────────────────────────────────────────────────────

    async def invalidate_by_id(self, indication_id: str) -> None:
        await self._drop(cache_keys.by_id(indication_id, self.prefix))

    async def invalidate_by_drug(self, drug: str) -> None:
        await self._drop(cache_keys.by_drug(drug, self.prefix))

    async def invalidate_pattern(self, pattern: str) -> int:
        full_pattern = f"{self.prefix}:{pattern}"
        try:
            deleted = await self.client.delete_by_prefix(full_pattern)
        except Exception:
            logger.warning("Cache invalidation failed for %s", full_pattern, exc_info=True)
            return 0
        logger.debug("Invalidated %d cache entries matching %s", deleted, full_pattern)
        return deleted

    async def invalidate_all(self) -> int:
        return await self.invalidate_pattern("*")
