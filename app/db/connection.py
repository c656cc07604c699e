"""asyncpg connection pool management."""

from __future__ import annotations

import logging

import asyncpg

logger = logging.getLogger(__name__)


async def create_pool(dsn: str, *, min_size: int = 2, max_size: int = 10) -> asyncpg.Pool:
    pool = await asyncpg.create_pool(dsn=dsn, min_size=min_size, max_size=max_size)
    logger.info("Database pool created (min=%d, max=%d)", min_size, max_size)
    return pool


async def close_pool(pool: asyncpg.Pool | None) -> None:
    if pool is not None:
        await pool.close()
        logger.info("Database pool closed")
