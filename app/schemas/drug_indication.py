"""Pydantic models for drug indications mapped to ICD-10 codes."""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

ICD10_PATTERN = re.compile(r"^[A-Z]\d{2}(\.[0-9A-Z]{1,4})?$")
URL_PATTERN = re.compile(r"^https?://.+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ──────────────────────────────────────────────────────────────────────

class MappingStatus(str, Enum):
    MAPPED = "mapped"
    UNMAPPED = "unmapped"
    PENDING = "pending"
    REVIEW = "review"


# ── Shared validators ──────────────────────────────────────────────────────────

def check_icd10_codes(codes: list[str] | None) -> list[str] | None:
    if codes is None:
        return codes
    bad = [c for c in codes if not ICD10_PATTERN.match(c)]
    if bad:
        raise ValueError(f"ICD-10 codes must be in valid format (e.g., L20.9, J45.909): {', '.join(bad)}")
    return codes


def check_source_url(url: str | None) -> str | None:
    if url is not None and not URL_PATTERN.match(url):
        raise ValueError("Source URL must be a valid http(s) URL")
    return url


# ── Root Model ─────────────────────────────────────────────────────────────────

class IndicationFields(BaseModel):
    """Fields supplied by clients; JSON uses camelCase, Python snake_case."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    drug: str = Field(..., min_length=2, max_length=100)
    source_url: str = Field(..., alias="sourceUrl")
    extracted_section: str = Field(..., alias="extractedSection", min_length=10)
    indication: str = Field(..., min_length=2, max_length=200)
    description: str = Field(..., min_length=10)
    synonyms: list[str] = Field(default_factory=list)
    icd10_codes: list[str] = Field(..., alias="icd10Codes", min_length=1)
    age_range: str = Field(..., alias="ageRange", min_length=2, max_length=50)
    limitations: str = ""
    mapping_status: MappingStatus = Field(MappingStatus.PENDING, alias="mappingStatus")
    mapping_notes: str = Field("", alias="mappingNotes")

    @field_validator("icd10_codes")
    @classmethod
    def validate_icd10_codes(cls, v: list[str]) -> list[str]:
        return check_icd10_codes(v)

    @field_validator("source_url")
    @classmethod
    def validate_source_url(cls, v: str) -> str:
        return check_source_url(v)


class DrugIndication(IndicationFields):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utcnow, alias="updatedAt")

    @field_validator("id", mode="before")
    @classmethod
    def ensure_uuid(cls, v) -> str:
        return str(uuid.UUID(str(v)))  # raises ValueError if invalid
