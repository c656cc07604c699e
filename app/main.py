"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api.indications import router as indications_router
from app.config import settings
from app.db.connection import close_pool, create_pool
from app.db.queries import init_schema
from app.services.cache_client import CacheClient
from app.services.cache_service import IndicationCache

VERSION = "1.0.0"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    pool = await create_pool(settings.DATABASE_URL)
    await init_schema(pool)
    app.state.db_pool = pool

    cache_client = CacheClient(
        settings.redis_url,
        default_ttl=settings.REDIS_TTL,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
    )
    if not await cache_client.connect():
        logger.warning("Starting without Redis; reads will fall through to the database")
    app.state.cache_client = cache_client
    app.state.indication_cache = IndicationCache(cache_client, prefix=settings.CACHE_PREFIX)
    yield
    # Shutdown
    await cache_client.disconnect()
    await close_pool(pool)


app = FastAPI(
    title="Drug Indication Service",
    description="Drug indications mapped to ICD-10 codes, served through a Redis read-through cache",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGIN.split(",")],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(indications_router)


@app.get("/")
async def root():
    return {
        "message": "Drug Indication Service API",
        "version": VERSION,
        "documentation": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health(request: Request):
    cache_client: CacheClient | None = getattr(request.app.state, "cache_client", None)
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.APP_ENV,
        "version": VERSION,
        "cache": "ready" if cache_client is not None and cache_client.is_ready() else "unavailable",
    }
