from shared.schemas.base import CamelModel, ErrorResponse, HealthResponse
from shared.schemas.documents import (
    PROCESSING_STATUS_RANK,
    DocType,
    DocumentStatus,
    ProcessingStatus,
)

__all__ = [
    "CamelModel",
    "HealthResponse",
    "ErrorResponse",
    "DocType",
    "DocumentStatus",
    "ProcessingStatus",
    "PROCESSING_STATUS_RANK",
]
