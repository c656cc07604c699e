"""Raw SQL query functions for the drug_indications table."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path

import asyncpg

UPDATABLE_COLUMNS = frozenset(
    {
        "drug",
        "source_url",
        "extracted_section",
        "indication",
        "description",
        "synonyms",
        "icd10_codes",
        "age_range",
        "limitations",
        "mapping_status",
        "mapping_notes",
    }
)


async def init_schema(pool: asyncpg.Pool) -> None:
    sql = (Path(__file__).parent / "schema.sql").read_text()
    async with pool.acquire() as conn:
        await conn.execute(sql)


async def insert_indication(pool: asyncpg.Pool, *, indication_id: str, fields: dict) -> dict:
    """Insert one row; raises ``asyncpg.UniqueViolationError`` on a duplicate (drug, indication)."""
    now = datetime.now(timezone.utc)
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """
            INSERT INTO drug_indications (
                id, drug, source_url, extracted_section, indication, description,
                synonyms, icd10_codes, age_range, limitations, mapping_status, mapping_notes,
                created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14)
            RETURNING *
            """,
            uuid.UUID(indication_id),
            fields["drug"],
            fields["source_url"],
            fields["extracted_section"],
            fields["indication"],
            fields["description"],
            fields.get("synonyms", []),
            fields["icd10_codes"],
            fields["age_range"],
            fields.get("limitations", ""),
            fields.get("mapping_status", "pending"),
            fields.get("mapping_notes", ""),
            now,
            now,
        )
    return dict(row)


async def upsert_indication(pool: asyncpg.Pool, *, fields: dict) -> dict:
    """Insert or refresh the row for (drug, indication); used by the seed script."""
    now = datetime.now(timezone.utc)
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            """
            INSERT INTO drug_indications (
                id, drug, source_url, extracted_section, indication, description,
                synonyms, icd10_codes, age_range, limitations, mapping_status, mapping_notes,
                created_at, updated_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $13)
            ON CONFLICT (drug, indication) DO UPDATE
                SET source_url = EXCLUDED.source_url,
                    extracted_section = EXCLUDED.extracted_section,
                    description = EXCLUDED.description,
                    synonyms = EXCLUDED.synonyms,
                    icd10_codes = EXCLUDED.icd10_codes,
                    age_range = EXCLUDED.age_range,
                    limitations = EXCLUDED.limitations,
                    mapping_status = EXCLUDED.mapping_status,
                    mapping_notes = EXCLUDED.mapping_notes,
                    updated_at = EXCLUDED.updated_at
            RETURNING *
            """,
            uuid.uuid4(),
            fields["drug"],
            fields["source_url"],
            fields["extracted_section"],
            fields["indication"],
            fields["description"],
            fields.get("synonyms", []),
            fields["icd10_codes"],
            fields["age_range"],
            fields.get("limitations", ""),
            fields.get("mapping_status", "pending"),
            fields.get("mapping_notes", ""),
            now,
        )
    return dict(row)


async def get_indication_by_id(pool: asyncpg.Pool, indication_id: str) -> dict | None:
    async with pool.acquire() as conn:
        row = await conn.fetchrow("SELECT * FROM drug_indications WHERE id = $1", uuid.UUID(indication_id))
    return dict(row) if row else None


async def list_indications(
    pool: asyncpg.Pool,
    *,
    page: int = 1,
    limit: int = 10,
    drug: str | None = None,
    indication: str | None = None,
    mapping_status: str | None = None,
    icd10_code: str | None = None,
) -> tuple[list[dict], int]:
    offset = (page - 1) * limit
    conditions = []
    params: list = []

    if drug:
        params.append(f"%{drug}%")
        conditions.append(f"drug ILIKE ${len(params)}")

    if indication:
        params.append(f"%{indication}%")
        conditions.append(f"indication ILIKE ${len(params)}")

    if mapping_status:
        params.append(mapping_status)
        conditions.append(f"mapping_status = ${len(params)}")

    if icd10_code:
        params.append(icd10_code)
        conditions.append(f"${len(params)} = ANY(icd10_codes)")

    where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    async with pool.acquire() as conn:
        count = await conn.fetchval(f"SELECT count(*) FROM drug_indications {where}", *params)  # noqa: S608
        rows = await conn.fetch(
            f"SELECT * FROM drug_indications {where} ORDER BY created_at DESC LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}",  # noqa: S608
            *params,
            limit,
            offset,
        )
    return [dict(r) for r in rows], count


async def find_by_drug(pool: asyncpg.Pool, drug: str) -> list[dict]:
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            "SELECT * FROM drug_indications WHERE drug ILIKE $1 ORDER BY indication",
            f"%{drug}%",
        )
    return [dict(r) for r in rows]


async def find_by_icd10_code(pool: asyncpg.Pool, code: str) -> list[dict]:
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            "SELECT * FROM drug_indications WHERE $1 = ANY(icd10_codes) ORDER BY drug, indication",
            code,
        )
    return [dict(r) for r in rows]


async def find_by_mapping_status(pool: asyncpg.Pool, status: str) -> list[dict]:
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            "SELECT * FROM drug_indications WHERE mapping_status = $1 ORDER BY created_at DESC",
            status,
        )
    return [dict(r) for r in rows]


async def search_indications(pool: asyncpg.Pool, query: str) -> list[dict]:
    async with pool.acquire() as conn:
        rows = await conn.fetch(
            """
            SELECT * FROM drug_indications
            WHERE drug ILIKE $1
               OR indication ILIKE $1
               OR description ILIKE $1
               OR EXISTS (SELECT 1 FROM unnest(synonyms) AS s(synonym) WHERE s.synonym ILIKE $1)
               OR EXISTS (SELECT 1 FROM unnest(icd10_codes) AS c(code) WHERE c.code ILIKE $1)
            ORDER BY drug, indication
            """,
            f"%{query}%",
        )
    return [dict(r) for r in rows]


async def update_indication(pool: asyncpg.Pool, indication_id: str, *, updates: dict) -> dict | None:
    set_clauses = []
    params: list = []
    for key, value in updates.items():
        if key not in UPDATABLE_COLUMNS:
            raise ValueError(f"Column {key!r} cannot be updated")
        params.append(value)
        set_clauses.append(f"{key} = ${len(params)}")

    params.append(datetime.now(timezone.utc))
    set_clauses.append(f"updated_at = ${len(params)}")

    params.append(uuid.UUID(indication_id))
    sql = f"UPDATE drug_indications SET {', '.join(set_clauses)} WHERE id = ${len(params)} RETURNING *"  # noqa: S608

    async with pool.acquire() as conn:
        row = await conn.fetchrow(sql, *params)
    return dict(row) if row else None


async def delete_indication(pool: asyncpg.Pool, indication_id: str) -> bool:
    async with pool.acquire() as conn:
        result = await conn.execute("DELETE FROM drug_indications WHERE id = $1", uuid.UUID(indication_id))
    return result == "DELETE 1"


async def get_stats(pool: asyncpg.Pool) -> dict:
    async with pool.acquire() as conn:
        totals = await conn.fetchrow(
            """
            SELECT count(*) AS total_indications,
                   count(DISTINCT drug) AS unique_drugs,
                   (SELECT count(DISTINCT code)
                      FROM drug_indications, unnest(icd10_codes) AS u(code)) AS unique_icd10_codes
            FROM drug_indications
            """
        )
        status_rows = await conn.fetch(
            "SELECT mapping_status, count(*) AS count FROM drug_indications GROUP BY mapping_status"
        )
    return {
        "total_indications": totals["total_indications"],
        "unique_drugs": totals["unique_drugs"],
        "unique_icd10_codes": totals["unique_icd10_codes"],
        "mapping_status": {r["mapping_status"]: r["count"] for r in status_rows},
    }
