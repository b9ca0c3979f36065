from __future__ import annotations

from abc import ABC, abstractmethod
from uuid import UUID

from intake_service.domain.models import (
    DispatchOutcome,
    DocumentFilter,
    DocumentRecord,
    StatusUpdate,
)
from shared.events.document_events import DocumentDispatchRequestedEvent


class DocumentRepositoryPort(ABC):
    @abstractmethod
    async def insert_if_absent(self, document: DocumentRecord) -> DocumentRecord:
        """Atomically insert unless doc_number is taken.

        Raises DuplicateDocumentError carrying the existing identity on conflict.
        """

    @abstractmethod
    async def update_status(self, document_id: UUID, update: StatusUpdate) -> DocumentRecord:
        """Apply a partial status update and bump updated_at.

        Raises DocumentNotFoundError if document_id is unknown.
        """

    @abstractmethod
    async def get(self, document_id: UUID) -> DocumentRecord | None:
        """Retrieve document metadata by ID."""

    @abstractmethod
    async def list(
        self, filters: DocumentFilter, page: int, page_size: int
    ) -> tuple[list[DocumentRecord], int]:
        """Return one page ordered by created_at descending, plus the filtered total."""


class WorkflowDispatcherPort(ABC):
    @abstractmethod
    async def dispatch(
        self, event: DocumentDispatchRequestedEvent, timeout: float
    ) -> DispatchOutcome:
        """Hand a document to the external workflow. Never raises; failures become DispatchFailed."""
