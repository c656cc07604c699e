"""Shared test fixtures."""

from __future__ import annotations

import fnmatch
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.indications import router as indications_router
from app.services.cache_client import CacheClient
from app.services.cache_service import IndicationCache


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` with a manual clock for TTLs."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.expires_at: dict[str, float] = {}
        self.now = 0.0
        self.closed = False

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def ttl_of(self, key: str) -> float | None:
        exp = self.expires_at.get(key)
        return None if exp is None else exp - self.now

    def _alive(self, key: str) -> bool:
        exp = self.expires_at.get(key)
        if exp is not None and self.now >= exp:
            self.store.pop(key, None)
            self.expires_at.pop(key, None)
        return key in self.store

    async def ping(self) -> bool:
        return True

    async def get(self, key: str) -> str | None:
        return self.store[key] if self._alive(key) else None

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.store[key] = value
        if ex:
            self.expires_at[key] = self.now + ex
        else:
            self.expires_at.pop(key, None)
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._alive(key):
                del self.store[key]
                self.expires_at.pop(key, None)
                removed += 1
        return removed

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._alive(key))

    async def scan_iter(self, match: str = "*"):
        for key in list(self.store):
            if self._alive(key) and fnmatch.fnmatchcase(key, match):
                yield key

    async def flushdb(self) -> bool:
        self.store.clear()
        self.expires_at.clear()
        return True

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture()
def sample_indication_data() -> dict:
    """A valid DrugIndication as returned by the API (camelCase)."""
    now = datetime.now(timezone.utc).isoformat()
    return {
        "id": str(uuid.uuid4()),
        "drug": "Dupixent",
        "sourceUrl": "https://dailymed.nlm.nih.gov/dailymed/drugInfo.cfm?setid=dupixent",
        "extractedSection": "INDICATIONS AND USAGE: DUPIXENT is indicated for atopic dermatitis.",
        "indication": "Atopic Dermatitis",
        "description": "Treatment of moderate-to-severe atopic dermatitis.",
        "synonyms": ["Eczema"],
        "icd10Codes": ["L20.9"],
        "ageRange": "≥6 months",
        "limitations": "",
        "mappingStatus": "mapped",
        "mappingNotes": "Direct mapping",
        "createdAt": now,
        "updatedAt": now,
    }


@pytest.fixture()
def sample_row(sample_indication_data: dict) -> dict:
    """The same indication as an asyncpg row dict (snake_case, native types)."""
    now = datetime.now(timezone.utc)
    return {
        "id": uuid.UUID(sample_indication_data["id"]),
        "drug": "Dupixent",
        "source_url": sample_indication_data["sourceUrl"],
        "extracted_section": sample_indication_data["extractedSection"],
        "indication": "Atopic Dermatitis",
        "description": sample_indication_data["description"],
        "synonyms": ["Eczema"],
        "icd10_codes": ["L20.9"],
        "age_range": "≥6 months",
        "limitations": "",
        "mapping_status": "mapped",
        "mapping_notes": "Direct mapping",
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture()
def create_payload(sample_indication_data: dict) -> dict:
    return {
        k: v for k, v in sample_indication_data.items() if k not in {"id", "createdAt", "updatedAt"}
    }


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def mock_pool():
    return AsyncMock()


@pytest_asyncio.fixture()
async def cache_client(fake_redis: FakeRedis) -> CacheClient:
    client = CacheClient("redis://test:6379/0", default_ttl=3600, client=fake_redis)
    await client.connect()
    return client


@pytest_asyncio.fixture()
async def indication_cache(cache_client: CacheClient) -> IndicationCache:
    return IndicationCache(cache_client)


@pytest.fixture()
def client(mock_pool, fake_redis: FakeRedis) -> TestClient:
    cache_client = CacheClient("redis://test:6379/0", default_ttl=3600, client=fake_redis)

    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        await cache_client.connect()
        yield

    test_app = FastAPI(lifespan=test_lifespan)
    test_app.include_router(indications_router)
    test_app.state.db_pool = mock_pool
    test_app.state.indication_cache = IndicationCache(cache_client)

    with TestClient(test_app, raise_server_exceptions=True) as c:
        yield c
