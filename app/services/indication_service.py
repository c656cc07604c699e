"""Drug indication reads and writes, wrapped in the Redis read-through cache.

Reads check the cache first and populate it on a miss. A create clears the
whole cache namespace; update and delete clear only the id key and the drug
key(s) of the affected record.
"""

from __future__ import annotations

import logging
import math
import uuid

import asyncpg
from pydantic import TypeAdapter, ValidationError

from app.db import queries
from app.schemas import (
    DrugIndication,
    IndicationCreateRequest,
    IndicationListResponse,
    IndicationStats,
    IndicationUpdateRequest,
)
from app.services.cache_service import IndicationCache

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

INDICATION = TypeAdapter(DrugIndication)
INDICATIONS = TypeAdapter(list[DrugIndication])
INDICATION_PAGE = TypeAdapter(IndicationListResponse)
STATS = TypeAdapter(IndicationStats)


class IndicationNotFoundError(LookupError):
    def __init__(self, indication_id: str) -> None:
        super().__init__(f"Drug indication {indication_id} not found")
        self.indication_id = indication_id


class DuplicateIndicationError(ValueError):
    def __init__(self, drug: str, indication: str) -> None:
        super().__init__("Drug indication already exists for this drug and indication combination")
        self.drug = drug
        self.indication = indication


def to_payload(row: dict) -> dict:
    """Database row -> JSON-ready dict (camelCase), the shape stored in the cache."""
    return DrugIndication.model_validate(row).model_dump(mode="json", by_alias=True)


def is_servable(cached, adapter: TypeAdapter) -> bool:
    """True when a cached payload is present and still matches the response model it is served as."""
    if cached is None:
        return False
    try:
        adapter.validate_python(cached)
    except ValidationError:
        logger.warning("Ignoring cached payload that no longer validates", exc_info=True)
        return False
    return True


class IndicationService:
    def __init__(self, pool: asyncpg.Pool, cache: IndicationCache) -> None:
        self.pool = pool
        self.cache = cache

    # ── Writes ────────────────────────────────────────────────────────────────

    async def create(self, body: IndicationCreateRequest) -> dict:
        fields = body.model_dump(mode="json")
        indication_id = str(uuid.uuid4())
        try:
            row = await queries.insert_indication(self.pool, indication_id=indication_id, fields=fields)
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateIndicationError(body.drug, body.indication) from exc

        # A new record can land in any list, search, stats, drug or code entry.
        await self.cache.invalidate_all()
        logger.info("Created drug indication %s", indication_id)
        return to_payload(row)

    async def update_by_id(self, indication_id: str, body: IndicationUpdateRequest) -> dict:
        existing = await queries.get_indication_by_id(self.pool, indication_id)
        if not existing:
            raise IndicationNotFoundError(indication_id)

        updates = {k: v for k, v in body.model_dump(mode="json", exclude_unset=True).items() if v is not None}
        if not updates:
            return to_payload(existing)

        try:
            row = await queries.update_indication(self.pool, indication_id, updates=updates)
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateIndicationError(
                updates.get("drug", existing["drug"]), updates.get("indication", existing["indication"])
            ) from exc
        if not row:
            raise IndicationNotFoundError(indication_id)

        await self.cache.invalidate_by_id(indication_id)
        await self.cache.invalidate_by_drug(existing["drug"])
        if row["drug"] != existing["drug"]:
            await self.cache.invalidate_by_drug(row["drug"])
        logger.info("Updated drug indication %s", indication_id)
        return to_payload(row)

    async def delete_by_id(self, indication_id: str) -> None:
        existing = await queries.get_indication_by_id(self.pool, indication_id)
        if not existing:
            raise IndicationNotFoundError(indication_id)

        if not await queries.delete_indication(self.pool, indication_id):
            raise IndicationNotFoundError(indication_id)

        await self.cache.invalidate_by_id(indication_id)
        await self.cache.invalidate_by_drug(existing["drug"])
        logger.info("Deleted drug indication %s", indication_id)

    # ── Reads ─────────────────────────────────────────────────────────────────

    async def find_all(
        self,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        drug: str | None = None,
        indication: str | None = None,
        mapping_status: str | None = None,
        icd10_code: str | None = None,
    ) -> dict:
        filters = {
            "page": page,
            "limit": limit,
            "drug": drug,
            "indication": indication,
            "mappingStatus": mapping_status,
            "icd10Code": icd10_code,
        }
        cached = await self.cache.get_list(filters)
        if is_servable(cached, INDICATION_PAGE):
            return cached

        rows, total = await queries.list_indications(
            self.pool,
            page=page,
            limit=limit,
            drug=drug,
            indication=indication,
            mapping_status=mapping_status,
            icd10_code=icd10_code,
        )
        result = {
            "data": [to_payload(r) for r in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }
        await self.cache.set_list(filters, result)
        return result

    async def find_by_id(self, indication_id: str) -> dict:
        cached = await self.cache.get_by_id(indication_id)
        if is_servable(cached, INDICATION):
            return cached

        row = await queries.get_indication_by_id(self.pool, indication_id)
        if not row:
            raise IndicationNotFoundError(indication_id)

        payload = to_payload(row)
        await self.cache.set_by_id(indication_id, payload)
        return payload

    async def find_by_drug(self, drug: str) -> list[dict]:
        cached = await self.cache.get_by_drug(drug)
        if is_servable(cached, INDICATIONS):
            return cached

        payload = [to_payload(r) for r in await queries.find_by_drug(self.pool, drug)]
        await self.cache.set_by_drug(drug, payload)
        return payload

    async def find_by_icd10_code(self, code: str) -> list[dict]:
        cached = await self.cache.get_by_icd10(code)
        if is_servable(cached, INDICATIONS):
            return cached

        payload = [to_payload(r) for r in await queries.find_by_icd10_code(self.pool, code)]
        await self.cache.set_by_icd10(code, payload)
        return payload

    async def find_by_mapping_status(self, status: str) -> list[dict]:
        return [to_payload(r) for r in await queries.find_by_mapping_status(self.pool, status)]

    async def search(self, query: str) -> list[dict]:
        cached = await self.cache.get_search(query)
        if is_servable(cached, INDICATIONS):
            return cached

        payload = [to_payload(r) for r in await queries.search_indications(self.pool, query)]
        await self.cache.set_search(query, payload)
        return payload

    async def get_stats(self) -> dict:
        cached = await self.cache.get_stats()
        if is_servable(cached, STATS):
            return cached

        raw = await queries.get_stats(self.pool)
        stats = {
            "totalIndications": raw["total_indications"],
            "uniqueDrugs": raw["unique_drugs"],
            "uniqueICD10Codes": raw["unique_icd10_codes"],
            "mappingStatus": raw["mapping_status"],
        }
        await self.cache.set_stats(stats)
        return stats
