"""FastAPI dependency injection helpers."""

from __future__ import annotations

import asyncpg
from fastapi import Depends, Request

from app.services.cache_service import IndicationCache
from app.services.indication_service import IndicationService


async def get_db_pool(request: Request) -> asyncpg.Pool:
    return request.app.state.db_pool


async def get_indication_cache(request: Request) -> IndicationCache:
    return request.app.state.indication_cache


async def get_indication_service(
    pool: asyncpg.Pool = Depends(get_db_pool),
    cache: IndicationCache = Depends(get_indication_cache),
) -> IndicationService:
    return IndicationService(pool, cache)
