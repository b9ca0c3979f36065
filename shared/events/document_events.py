from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from shared.events.base import BaseEvent
from shared.schemas.documents import DocType


class DocumentDispatchRequestedEvent(BaseEvent):
    """Sent by intake_service to the external workflow after a document is recorded.

    Delivered as the JSON body of an HTTP POST to the configured workflow webhook.
    The XML payload travels only in this event; the service never stores it.

    Example payload:
    {
        "eventId": "550e8400-e29b-41d4-a716-446655440000",
        "eventType": "document.dispatch_requested",
        "correlationId": "7c9e6679-7425-40de-944b-e07fc1f90ae7",
        "schemaVersion": "1.0",
        "timestampUtc": "2026-02-27T15:00:00.000Z",
        "documentId": "a3bb189e-8bf9-3888-9912-ace4e6543002",
        "docType": "SO",
        "docNumber": "SO1001",
        "fileName": "SO1001.xml",
        "fileSize": 2048,
        "xmlContent": "<SalesOrder>...</SalesOrder>",
        "uploadedAt": "2026-02-27T15:00:00.000Z",
        "uploadedBy": "admin"
    }
    """

    event_type: Literal["document.dispatch_requested"] = Field(
        default="document.dispatch_requested",
        description="Discriminator field, always 'document.dispatch_requested'.",
    )
    document_id: UUID = Field(description="Identifier of the recorded document.")
    doc_type: DocType = Field(description="Business document type.")
    doc_number: str = Field(description="Business-unique document number.")
    file_name: str = Field(description="Original filename as provided by the uploader.")
    file_size: int = Field(ge=0, description="File size in bytes.")
    xml_content: str = Field(description="Full XML document decoded as UTF-8 text.")
    uploaded_at: datetime = Field(description="Creation timestamp of the document record.")
    uploaded_by: str = Field(description="Identity of the uploader.")
