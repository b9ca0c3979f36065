from __future__ import annotations

from enum import StrEnum


class DocType(StrEnum):
    SALES_ORDER = "SO"
    ENTERPRISE = "EN"
    SHIPMENT = "SH"


class DocumentStatus(StrEnum):
    UPLOADED = "UPLOADED"


class ProcessingStatus(StrEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    ERROR = "ERROR"
    DONE = "DONE"


# Position in the normal PENDING -> PROCESSING/ERROR -> DONE progression.
PROCESSING_STATUS_RANK: dict[ProcessingStatus, int] = {
    ProcessingStatus.PENDING: 0,
    ProcessingStatus.PROCESSING: 1,
    ProcessingStatus.ERROR: 1,
    ProcessingStatus.DONE: 2,
}
