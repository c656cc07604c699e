#!/usr/bin/env python3
"""
Seed the database with the Dupixent label indications.

Rows are upserted on (drug, indication), so the script can be re-run safely.
The whole cache namespace is cleared afterwards because the seed touches
lists, stats, search results and drug/code lookups at once.

Usage: python -m scripts.seed_indications [--skip-cache]
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from app.config import settings
from app.db.connection import close_pool, create_pool
from app.db.queries import init_schema, upsert_indication
from app.schemas import IndicationCreateRequest
from app.services.cache_client import CacheClient
from app.services.cache_service import IndicationCache

logger = logging.getLogger("seed_indications")

DUPIXENT_URL = "https://dailymed.nlm.nih.gov/dailymed/drugInfo.cfm?setid=dupixent"

DUPIXENT_INDICATIONS = [
    {
        "drug": "Dupixent",
        "sourceUrl": DUPIXENT_URL,
        "extractedSection": (
            "INDICATIONS AND USAGE: DUPIXENT is indicated for the treatment of adult and pediatric "
            "patients aged 6 months and older with moderate-to-severe atopic dermatitis whose disease "
            "is not adequately controlled with topical prescription therapies or when those therapies "
            "are not advisable."
        ),
        "indication": "Atopic Dermatitis",
        "description": (
            "Treatment of moderate-to-severe atopic dermatitis in adult and pediatric patients aged "
            "6 months and older whose disease is not adequately controlled with topical prescription therapies."
        ),
        "synonyms": ["Eczema", "Dermatitis", "Atopic Eczema"],
        "icd10Codes": ["L20.9"],
        "ageRange": "≥6 months",
        "limitations": "Use with or without topical corticosteroids.",
        "mappingStatus": "mapped",
        "mappingNotes": "Direct mapping to ICD-10 code L20.9 (Atopic dermatitis, unspecified)",
    },
    {
        "drug": "Dupixent",
        "sourceUrl": DUPIXENT_URL,
        "extractedSection": (
            "INDICATIONS AND USAGE: DUPIXENT is indicated as an add-on maintenance treatment in adult "
            "and adolescent patients with moderate-to-severe asthma with an eosinophilic phenotype or "
            "with oral corticosteroid dependent asthma."
        ),
        "indication": "Asthma",
        "description": (
            "Add-on maintenance treatment in adult and adolescent patients with moderate-to-severe "
            "asthma with an eosinophilic phenotype or with oral corticosteroid dependent asthma."
        ),
        "synonyms": ["Bronchial Asthma", "Allergic Asthma"],
        "icd10Codes": ["J45.909"],
        "ageRange": "≥12 years",
        "limitations": "Not for relief of acute bronchospasm or status asthmaticus.",
        "mappingStatus": "mapped",
        "mappingNotes": "Mapped to J45.909 (Unspecified asthma, uncomplicated)",
    },
    {
        "drug": "Dupixent",
        "sourceUrl": DUPIXENT_URL,
        "extractedSection": (
            "INDICATIONS AND USAGE: DUPIXENT is indicated as an add-on treatment for adult patients "
            "with inadequately controlled chronic rhinosinusitis with nasal polyps (CRSwNP)."
        ),
        "indication": "Chronic Rhinosinusitis with Nasal Polyps",
        "description": (
            "Add-on treatment for adult patients with inadequately controlled chronic rhinosinusitis "
            "with nasal polyps (CRSwNP)."
        ),
        "synonyms": ["CRSwNP", "Nasal Polyps", "Chronic Sinusitis with Polyps"],
        "icd10Codes": ["J32.4"],
        "ageRange": "≥18 years",
        "limitations": "Add-on treatment for inadequately controlled disease.",
        "mappingStatus": "mapped",
        "mappingNotes": "Mapped to J32.4 (Chronic pansinusitis)",
    },
    {
        "drug": "Dupixent",
        "sourceUrl": DUPIXENT_URL,
        "extractedSection": (
            "INDICATIONS AND USAGE: DUPIXENT is indicated for the treatment of adult and pediatric "
            "patients aged 1 year and older and weighing at least 15 kg with eosinophilic esophagitis (EoE)."
        ),
        "indication": "Eosinophilic Esophagitis",
        "description": (
            "Treatment of adult and pediatric patients aged 1 year and older and weighing at least "
            "15 kg with eosinophilic esophagitis (EoE)."
        ),
        "synonyms": ["EoE", "Allergic Esophagitis"],
        "icd10Codes": ["K20.0"],
        "ageRange": "≥1 year and ≥15 kg",
        "limitations": "Weight requirement of at least 15 kg.",
        "mappingStatus": "mapped",
        "mappingNotes": "Mapped to K20.0 (Eosinophilic esophagitis)",
    },
    {
        "drug": "Dupixent",
        "sourceUrl": DUPIXENT_URL,
        "extractedSection": (
            "INDICATIONS AND USAGE: DUPIXENT is indicated for the treatment of prurigo nodularis in adults."
        ),
        "indication": "Prurigo Nodularis",
        "description": "Treatment of prurigo nodularis in adults.",
        "synonyms": ["Nodular Prurigo", "Picker's Nodules"],
        "icd10Codes": ["L28.1"],
        "ageRange": "≥18 years",
        "limitations": "Adult patients only.",
        "mappingStatus": "mapped",
        "mappingNotes": "Mapped to L28.1 (Prurigo nodularis)",
    },
    {
        "drug": "Dupixent",
        "sourceUrl": DUPIXENT_URL,
        "extractedSection": (
            "INDICATIONS AND USAGE: DUPIXENT is indicated as an add-on maintenance treatment for adult "
            "patients with uncontrolled chronic obstructive pulmonary disease (COPD) with an "
            "eosinophilic phenotype."
        ),
        "indication": "Chronic Obstructive Pulmonary Disease",
        "description": (
            "Add-on maintenance treatment for adult patients with uncontrolled chronic obstructive "
            "pulmonary disease (COPD) with an eosinophilic phenotype."
        ),
        "synonyms": ["COPD", "Chronic Bronchitis", "Emphysema"],
        "icd10Codes": ["J44.9"],
        "ageRange": "≥18 years",
        "limitations": "Add-on maintenance treatment. Eosinophilic phenotype required.",
        "mappingStatus": "mapped",
        "mappingNotes": "Mapped to J44.9 (Chronic obstructive pulmonary disease, unspecified)",
    },
    {
        "drug": "Dupixent",
        "sourceUrl": DUPIXENT_URL,
        "extractedSection": (
            "INDICATIONS AND USAGE: DUPIXENT is indicated for the treatment of chronic spontaneous "
            "urticaria in adults and adolescents 12 years of age and older whose disease remains "
            "uncontrolled despite H1 antihistamine treatment."
        ),
        "indication": "Chronic Spontaneous Urticaria",
        "description": (
            "Treatment of chronic spontaneous urticaria in adults and adolescents 12 years of age and "
            "older whose disease remains uncontrolled despite H1 antihistamine treatment."
        ),
        "synonyms": ["CSU", "Chronic Urticaria", "Chronic Hives"],
        "icd10Codes": ["L50.1"],
        "ageRange": "≥12 years",
        "limitations": "For patients uncontrolled despite H1 antihistamine treatment.",
        "mappingStatus": "mapped",
        "mappingNotes": "Mapped to L50.1 (Idiopathic urticaria)",
    },
]


async def seed(*, skip_cache: bool = False) -> int:
    pool = await create_pool(settings.DATABASE_URL, min_size=1, max_size=2)
    try:
        await init_schema(pool)
        for raw in DUPIXENT_INDICATIONS:
            fields = IndicationCreateRequest.model_validate(raw).model_dump(mode="json")
            row = await upsert_indication(pool, fields=fields)
            logger.info("Upserted %s / %s (%s)", row["drug"], row["indication"], ", ".join(row["icd10_codes"]))
    finally:
        await close_pool(pool)

    if not skip_cache:
        client = CacheClient(settings.redis_url, default_ttl=settings.REDIS_TTL)
        await client.connect()
        try:
            deleted = await IndicationCache(client, prefix=settings.CACHE_PREFIX).invalidate_all()
            logger.info("Cleared %d cache entries", deleted)
        finally:
            await client.disconnect()

    return len(DUPIXENT_INDICATIONS)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--skip-cache", action="store_true", help="Do not clear the Redis namespace")
    args = parser.parse_args()

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format="%(levelname)s %(message)s")
    count = asyncio.run(seed(skip_cache=args.skip_cache))
    logger.info("Seeded %d drug indications", count)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
