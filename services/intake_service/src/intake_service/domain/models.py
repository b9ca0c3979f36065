from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from shared.schemas.documents import DocType, DocumentStatus, ProcessingStatus

MAX_DOC_NUMBER_LENGTH = 255


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentIdentity(BaseModel):
    """Minimal identity of a stored document, reported back on a docNumber conflict."""

    model_config = ConfigDict(frozen=True)

    document_id: UUID
    doc_number: str
    doc_type: DocType
    status: DocumentStatus
    processing_status: ProcessingStatus
    created_at: datetime


class DocumentRecord(BaseModel):
    """Metadata row for one ingested document. The XML payload itself is never part of it."""

    model_config = ConfigDict(frozen=True)

    document_id: UUID = Field(default_factory=uuid4)
    doc_number: str = Field(min_length=1, max_length=MAX_DOC_NUMBER_LENGTH)
    doc_type: DocType
    file_name: str
    file_size_bytes: int = Field(ge=0)
    uploaded_by: str
    status: DocumentStatus = DocumentStatus.UPLOADED
    processing_status: ProcessingStatus = ProcessingStatus.PENDING
    workflow_id: str | None = None
    processed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def identity(self) -> DocumentIdentity:
        return DocumentIdentity(
            document_id=self.document_id,
            doc_number=self.doc_number,
            doc_type=self.doc_type,
            status=self.status,
            processing_status=self.processing_status,
            created_at=self.created_at,
        )


class StatusUpdate(BaseModel):
    """Partial update of the processing fields; None leaves a column untouched."""

    model_config = ConfigDict(frozen=True)

    processing_status: ProcessingStatus | None = None
    workflow_id: str | None = None
    processed_at: datetime | None = None


class DocumentFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    doc_type: DocType | None = None
    status: DocumentStatus | None = None


class DispatchAccepted(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["accepted"] = "accepted"
    workflow_id: str | None = None


class DispatchFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failed"] = "failed"
    reason: str


DispatchOutcome = Annotated[DispatchAccepted | DispatchFailed, Field(discriminator="kind")]


class IntakeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    document: DocumentRecord
    outcome: DispatchOutcome

    @property
    def dispatched(self) -> bool:
        return isinstance(self.outcome, DispatchAccepted)
