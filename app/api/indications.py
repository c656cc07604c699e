"""Drug indications API router mounted at /api/v1/drug-indications."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from app.api.deps import get_indication_service
from app.schemas import (
    DrugIndication,
    IndicationCreateRequest,
    IndicationListResponse,
    IndicationStats,
    IndicationUpdateRequest,
    MappingStatus,
)
from app.schemas.drug_indication import ICD10_PATTERN
from app.services.indication_service import (
    DuplicateIndicationError,
    IndicationNotFoundError,
    IndicationService,
)

router = APIRouter(prefix="/api/v1/drug-indications", tags=["drug-indications"])

ICD10_REGEX = ICD10_PATTERN.pattern
# "|" separates pairs in list cache keys, so free-text filters may not carry it.
FILTER_TEXT_REGEX = r"^[^|]*$"


# ── Lookups ────────────────────────────────────────────────────────────────────
# Static paths are declared before /{indication_id} so they are matched first.

@router.get("/", response_model=IndicationListResponse)
async def list_indications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    drug: str | None = Query(None, min_length=2, pattern=FILTER_TEXT_REGEX),
    indication: str | None = Query(None, min_length=2, pattern=FILTER_TEXT_REGEX),
    mapping_status: MappingStatus | None = Query(None, alias="mappingStatus"),
    icd10_code: str | None = Query(None, alias="icd10Code", pattern=ICD10_REGEX),
    service: IndicationService = Depends(get_indication_service),
):
    return await service.find_all(
        page=page,
        limit=limit,
        drug=drug,
        indication=indication,
        mapping_status=mapping_status.value if mapping_status else None,
        icd10_code=icd10_code,
    )


@router.get("/search", response_model=list[DrugIndication])
async def search_indications(
    q: str = Query(..., min_length=2),
    service: IndicationService = Depends(get_indication_service),
):
    return await service.search(q)


@router.get("/stats", response_model=IndicationStats)
async def get_stats(service: IndicationService = Depends(get_indication_service)):
    return await service.get_stats()


@router.get("/drugs/{drug_name}", response_model=list[DrugIndication])
async def get_indications_by_drug(
    drug_name: str = Path(..., min_length=2, max_length=100),
    service: IndicationService = Depends(get_indication_service),
):
    return await service.find_by_drug(drug_name)


@router.get("/icd10/{code}", response_model=list[DrugIndication])
async def get_indications_by_icd10(
    code: str = Path(..., pattern=ICD10_REGEX),
    service: IndicationService = Depends(get_indication_service),
):
    return await service.find_by_icd10_code(code)


@router.get("/mapping-status/{status}", response_model=list[DrugIndication])
async def get_indications_by_mapping_status(
    status: MappingStatus,
    service: IndicationService = Depends(get_indication_service),
):
    return await service.find_by_mapping_status(status.value)


@router.get("/{indication_id}", response_model=DrugIndication)
async def get_indication(
    indication_id: uuid.UUID,
    service: IndicationService = Depends(get_indication_service),
):
    try:
        return await service.find_by_id(str(indication_id))
    except IndicationNotFoundError:
        raise HTTPException(status_code=404, detail="Drug indication not found")


# ── CRUD ───────────────────────────────────────────────────────────────────────

@router.post("/", response_model=DrugIndication, status_code=201)
async def create_indication(
    body: IndicationCreateRequest,
    service: IndicationService = Depends(get_indication_service),
):
    try:
        return await service.create(body)
    except DuplicateIndicationError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.put("/{indication_id}", response_model=DrugIndication)
async def update_indication(
    indication_id: uuid.UUID,
    body: IndicationUpdateRequest,
    service: IndicationService = Depends(get_indication_service),
):
    try:
        return await service.update_by_id(str(indication_id), body)
    except IndicationNotFoundError:
        raise HTTPException(status_code=404, detail="Drug indication not found")
    except DuplicateIndicationError as exc:
        raise HTTPException(status_code=409, detail=str(exc))


@router.delete("/{indication_id}", status_code=204)
async def delete_indication(
    indication_id: uuid.UUID,
    service: IndicationService = Depends(get_indication_service),
):
    try:
        await service.delete_by_id(str(indication_id))
    except IndicationNotFoundError:
        raise HTTPException(status_code=404, detail="Drug indication not found")
