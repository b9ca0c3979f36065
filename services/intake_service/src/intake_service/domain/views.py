"""External representations of document records.

Internal names follow the storage model (file_name, file_size_bytes, ...);
clients see the camelCase contract defined here. Every field is mapped
explicitly in from_record so a storage rename cannot leak outward.
"""
from __future__ import annotations

import math
from datetime import datetime
from uuid import UUID

from pydantic import Field

from intake_service.domain.models import DocumentIdentity, DocumentRecord
from shared.schemas.base import CamelModel
from shared.schemas.documents import DocType, DocumentStatus, ProcessingStatus


class DocumentIdentityView(CamelModel):
    id: UUID
    doc_number: str
    doc_type: DocType
    status: DocumentStatus
    processing_status: ProcessingStatus
    created_at: datetime

    @classmethod
    def from_identity(cls, identity: DocumentIdentity) -> DocumentIdentityView:
        return cls(
            id=identity.document_id,
            doc_number=identity.doc_number,
            doc_type=identity.doc_type,
            status=identity.status,
            processing_status=identity.processing_status,
            created_at=identity.created_at,
        )


class UploadedDocumentView(CamelModel):
    id: UUID
    doc_number: str
    doc_type: DocType
    file_name: str
    status: DocumentStatus
    processing_status: ProcessingStatus
    workflow_id: str | None = None

    @classmethod
    def from_record(cls, record: DocumentRecord) -> UploadedDocumentView:
        return cls(
            id=record.document_id,
            doc_number=record.doc_number,
            doc_type=record.doc_type,
            file_name=record.file_name,
            status=record.status,
            processing_status=record.processing_status,
            workflow_id=record.workflow_id,
        )


class DocumentView(CamelModel):
    id: UUID
    doc_number: str
    doc_type: DocType
    file_name: str
    file_size: int
    status: DocumentStatus
    processing_status: ProcessingStatus
    uploaded_by: str
    created_at: datetime
    updated_at: datetime
    processed_at: datetime | None = None
    workflow_id: str | None = None

    @classmethod
    def from_record(cls, record: DocumentRecord) -> DocumentView:
        return cls(
            id=record.document_id,
            doc_number=record.doc_number,
            doc_type=record.doc_type,
            file_name=record.file_name,
            file_size=record.file_size_bytes,
            status=record.status,
            processing_status=record.processing_status,
            uploaded_by=record.uploaded_by,
            created_at=record.created_at,
            updated_at=record.updated_at,
            processed_at=record.processed_at,
            workflow_id=record.workflow_id,
        )


class Pagination(CamelModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)

    @classmethod
    def compute(cls, page: int, limit: int, total: int) -> Pagination:
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class DocumentPage(CamelModel):
    success: bool = True
    data: list[DocumentView]
    pagination: Pagination


class DocumentDetailResponse(CamelModel):
    success: bool = True
    data: DocumentView


class UploadResponse(CamelModel):
    success: bool = True
    message: str
    document: UploadedDocumentView
    warning: str | None = None


class ConflictResponse(CamelModel):
    success: bool = False
    code: str = "DOCUMENT_EXISTS"
    message: str
    existing_document: DocumentIdentityView
    correlation_id: str | None = None


class StatusCallbackRequest(CamelModel):
    """Body posted by the external workflow. Unknown keys such as processedData are ignored."""

    processing_status: ProcessingStatus
    processed_at: datetime | None = None
    workflow_id: str | None = None


class StatusCallbackResponse(CamelModel):
    success: bool = True
    message: str = "Document status updated"
    document: DocumentView
