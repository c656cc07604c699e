"""Schema re-exports for convenient imports."""

from app.schemas.api_models import (
    IndicationCreateRequest,
    IndicationListResponse,
    IndicationStats,
    IndicationUpdateRequest,
    Pagination,
)
from app.schemas.drug_indication import DrugIndication, MappingStatus

__all__ = [
    "DrugIndication",
    "IndicationCreateRequest",
    "IndicationListResponse",
    "IndicationStats",
    "IndicationUpdateRequest",
    "MappingStatus",
    "Pagination",
]
