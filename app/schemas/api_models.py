"""API request and response models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.drug_indication import (
    DrugIndication,
    IndicationFields,
    MappingStatus,
    check_icd10_codes,
    check_source_url,
)


class IndicationCreateRequest(IndicationFields):
    """Full indication payload without server-managed fields (id/timestamps)."""


class IndicationUpdateRequest(BaseModel):
    """Partial update; every field is optional."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    drug: str | None = Field(None, min_length=2, max_length=100)
    source_url: str | None = Field(None, alias="sourceUrl")
    extracted_section: str | None = Field(None, alias="extractedSection", min_length=10)
    indication: str | None = Field(None, min_length=2, max_length=200)
    description: str | None = Field(None, min_length=10)
    synonyms: list[str] | None = None
    icd10_codes: list[str] | None = Field(None, alias="icd10Codes", min_length=1)
    age_range: str | None = Field(None, alias="ageRange", min_length=2, max_length=50)
    limitations: str | None = None
    mapping_status: MappingStatus | None = Field(None, alias="mappingStatus")
    mapping_notes: str | None = Field(None, alias="mappingNotes")

    @field_validator("icd10_codes")
    @classmethod
    def validate_icd10_codes(cls, v: list[str] | None) -> list[str] | None:
        return check_icd10_codes(v)

    @field_validator("source_url")
    @classmethod
    def validate_source_url(cls, v: str | None) -> str | None:
        return check_source_url(v)


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int
    pages: int


class IndicationListResponse(BaseModel):
    data: list[DrugIndication]
    pagination: Pagination


class IndicationStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_indications: int = Field(..., alias="totalIndications")
    unique_drugs: int = Field(..., alias="uniqueDrugs")
    unique_icd10_codes: int = Field(..., alias="uniqueICD10Codes")
    mapping_status: dict[str, int] = Field(default_factory=dict, alias="mappingStatus")
