from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog

from intake_service.domain.exceptions import DocumentNotFoundError, InvalidInputError
from intake_service.domain.interfaces import DocumentRepositoryPort, WorkflowDispatcherPort
from intake_service.domain.models import (
    MAX_DOC_NUMBER_LENGTH,
    DispatchAccepted,
    DispatchFailed,
    DispatchOutcome,
    DocumentFilter,
    DocumentRecord,
    IntakeResult,
    StatusUpdate,
    utcnow,
)
from intake_service.domain.views import DocumentPage, DocumentView, Pagination
from shared.events.document_events import DocumentDispatchRequestedEvent
from shared.schemas.documents import PROCESSING_STATUS_RANK, DocType, ProcessingStatus

logger = structlog.get_logger(__name__)

DEFAULT_DISPATCH_TIMEOUT_SECONDS = 5.0


def parse_doc_type(raw: str | None) -> DocType:
    try:
        return DocType(raw)
    except ValueError:
        raise InvalidInputError("Invalid document type") from None


def resolve_doc_number(doc_type: DocType, raw: str | None) -> str:
    doc_number = (raw or "").strip() or generate_doc_number(doc_type)
    if len(doc_number) > MAX_DOC_NUMBER_LENGTH:
        raise InvalidInputError(f"docNumber must be at most {MAX_DOC_NUMBER_LENGTH} characters")
    return doc_number


def generate_doc_number(doc_type: DocType, now: datetime | None = None) -> str:
    """Build a fallback document number from the type and epoch milliseconds.

    Two calls within the same millisecond yield the same value; the second
    insert is then rejected as a duplicate like any other collision.
    """
    moment = now or utcnow()
    return f"{doc_type.value}{int(moment.timestamp() * 1000)}"


class IntakeService:
    def __init__(
        self,
        repository: DocumentRepositoryPort,
        dispatcher: WorkflowDispatcherPort,
        dispatch_timeout_seconds: float = DEFAULT_DISPATCH_TIMEOUT_SECONDS,
    ) -> None:
        self._repository = repository
        self._dispatcher = dispatcher
        self._dispatch_timeout = dispatch_timeout_seconds

    async def submit(
        self,
        doc_type_raw: str | None,
        doc_number_raw: str | None,
        file_name: str,
        content: bytes,
        uploaded_by: str,
        correlation_id: str,
    ) -> IntakeResult:
        log = logger.bind(correlation_id=correlation_id, file_name=file_name)

        doc_type = parse_doc_type(doc_type_raw)
        doc_number = resolve_doc_number(doc_type, doc_number_raw)

        now = utcnow()
        document = DocumentRecord(
            doc_number=doc_number,
            doc_type=doc_type,
            file_name=file_name,
            file_size_bytes=len(content),
            uploaded_by=uploaded_by,
            created_at=now,
            updated_at=now,
        )

        # Raises DuplicateDocumentError before anything is dispatched.
        document = await self._repository.insert_if_absent(document)
        log = log.bind(document_id=str(document.document_id), doc_number=doc_number)
        log.info("intake.document.recorded", doc_type=doc_type.value, file_size_bytes=len(content))

        event = DocumentDispatchRequestedEvent(
            correlation_id=correlation_id,
            document_id=document.document_id,
            doc_type=document.doc_type,
            doc_number=document.doc_number,
            file_name=document.file_name,
            file_size=document.file_size_bytes,
            xml_content=content.decode("utf-8", errors="replace"),
            uploaded_at=document.created_at,
            uploaded_by=document.uploaded_by,
        )
        outcome = await self._dispatch(event, log)

        if isinstance(outcome, DispatchAccepted):
            update = StatusUpdate(
                processing_status=ProcessingStatus.PROCESSING,
                workflow_id=outcome.workflow_id,
            )
        else:
            update = StatusUpdate(processing_status=ProcessingStatus.ERROR)

        document = await self._repository.update_status(document.document_id, update)

        log.info(
            "intake.document.accepted",
            processing_status=document.processing_status.value,
            workflow_id=document.workflow_id,
            dispatched=isinstance(outcome, DispatchAccepted),
        )
        return IntakeResult(document=document, outcome=outcome)

    async def _dispatch(
        self, event: DocumentDispatchRequestedEvent, log: structlog.typing.FilteringBoundLogger
    ) -> DispatchOutcome:
        try:
            outcome = await self._dispatcher.dispatch(event, timeout=self._dispatch_timeout)
        except Exception as exc:  # noqa: BLE001
            log.error("intake.dispatch.crashed", error=str(exc), exc_info=True)
            return DispatchFailed(reason=str(exc) or type(exc).__name__)

        if isinstance(outcome, DispatchFailed):
            log.warning("intake.dispatch.failed", reason=outcome.reason)
        return outcome


class StatusReconciler:
    """Applies asynchronous workflow callbacks to stored records.

    Any enumerated status is accepted; repeated or out-of-order callbacks
    simply overwrite (last write wins). Backward moves are logged only.
    """

    def __init__(self, repository: DocumentRepositoryPort) -> None:
        self._repository = repository

    async def reconcile(
        self,
        document_id: UUID,
        processing_status: ProcessingStatus,
        processed_at: datetime | None = None,
        workflow_id: str | None = None,
    ) -> DocumentRecord:
        log = logger.bind(document_id=str(document_id))

        current = await self._repository.get(document_id)
        if current is None:
            log.warning("reconcile.document.not_found")
            raise DocumentNotFoundError(document_id)

        previous = current.processing_status
        if PROCESSING_STATUS_RANK[processing_status] < PROCESSING_STATUS_RANK[previous]:
            log.warning(
                "reconcile.transition.backward",
                previous_status=previous.value,
                new_status=processing_status.value,
            )

        update = StatusUpdate(
            processing_status=processing_status,
            processed_at=processed_at or utcnow(),
            workflow_id=workflow_id or None,
        )
        document = await self._repository.update_status(document_id, update)

        log.info(
            "reconcile.status.applied",
            previous_status=previous.value,
            processing_status=document.processing_status.value,
            workflow_id=document.workflow_id,
        )
        return document


class DocumentQueryService:
    def __init__(self, repository: DocumentRepositoryPort) -> None:
        self._repository = repository

    async def list_documents(
        self, filters: DocumentFilter, page: int = 1, limit: int = 10
    ) -> DocumentPage:
        if page < 1 or limit < 1:
            raise InvalidInputError("page and limit must be positive integers")

        records, total = await self._repository.list(filters, page=page, page_size=limit)

        logger.debug(
            "query.documents.listed",
            page=page,
            limit=limit,
            total=total,
            returned=len(records),
        )
        return DocumentPage(
            data=[DocumentView.from_record(r) for r in records],
            pagination=Pagination.compute(page=page, limit=limit, total=total),
        )

    async def get_document(self, document_id: UUID) -> DocumentView:
        record = await self._repository.get(document_id)
        if record is None:
            raise DocumentNotFoundError(document_id)
        return DocumentView.from_record(record)
