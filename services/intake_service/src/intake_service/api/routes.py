from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from intake_service.api.dependencies import (
    get_intake_service,
    get_query_service,
    get_settings,
    get_status_reconciler,
)
from intake_service.domain.exceptions import (
    DocumentNotFoundError,
    DocumentTooLargeError,
    MissingFileError,
    UnsupportedContentTypeError,
)
from intake_service.domain.models import DocumentFilter
from intake_service.domain.services import DocumentQueryService, IntakeService, StatusReconciler
from intake_service.domain.views import (
    ConflictResponse,
    DocumentDetailResponse,
    DocumentPage,
    DocumentView,
    StatusCallbackRequest,
    StatusCallbackResponse,
    UploadedDocumentView,
    UploadResponse,
)
from intake_service.settings import Settings
from shared.logging.config import bind_request_context
from shared.schemas.base import ErrorResponse
from shared.schemas.documents import DocType, DocumentStatus

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/documents")

MESSAGE_DISPATCHED = "File uploaded and sent for processing"
MESSAGE_DISPATCH_FAILED = "File uploaded but processing dispatch failed"
WARNING_DISPATCH_FAILED = "Workflow processing unavailable"


def _parse_document_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError:
        raise DocumentNotFoundError(raw) from None


def _check_transport(file: UploadFile | None, content: bytes, settings: Settings) -> None:
    if file is None:
        raise MissingFileError()

    content_type = file.content_type or ""
    filename = (file.filename or "").lower()
    if content_type not in settings.allowed_content_types and not filename.endswith(".xml"):
        raise UnsupportedContentTypeError(content_type or "unknown")

    limit_bytes = settings.max_document_size_mb * 1024 * 1024
    if len(content) > limit_bytes:
        raise DocumentTooLargeError(len(content), limit_bytes)


@router.post(
    "/upload",
    response_model=UploadResponse,
    tags=["intake"],
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ConflictResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
    },
)
async def upload_document(
    request: Request,
    xml_file: UploadFile | None = File(default=None, alias="xmlFile"),
    doc_type: str | None = Form(default=None, alias="docType"),
    doc_number: str | None = Form(default=None, alias="docNumber"),
    uploaded_by: str | None = Form(default=None, alias="uploadedBy"),
    service: IntakeService = Depends(get_intake_service),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    correlation_id: str = request.state.correlation_id
    uploader = uploaded_by or settings.default_uploaded_by
    bind_request_context(correlation_id=correlation_id, user_id=uploader)

    log = logger.bind(
        correlation_id=correlation_id,
        file_name=xml_file.filename if xml_file else None,
        doc_type=doc_type,
        doc_number=doc_number,
    )
    log.info("intake.request.received")

    content = await xml_file.read() if xml_file else b""
    _check_transport(xml_file, content, settings)

    result = await service.submit(
        doc_type_raw=doc_type,
        doc_number_raw=doc_number,
        file_name=xml_file.filename or "unknown.xml",
        content=content,
        uploaded_by=uploader,
        correlation_id=correlation_id,
    )

    return UploadResponse(
        message=MESSAGE_DISPATCHED if result.dispatched else MESSAGE_DISPATCH_FAILED,
        document=UploadedDocumentView.from_record(result.document),
        warning=None if result.dispatched else WARNING_DISPATCH_FAILED,
    )


@router.put(
    "/{document_id}/status",
    response_model=StatusCallbackResponse,
    tags=["workflow"],
    responses={404: {"model": ErrorResponse}},
)
async def update_status(
    document_id: str,
    body: StatusCallbackRequest,
    reconciler: StatusReconciler = Depends(get_status_reconciler),
) -> StatusCallbackResponse:
    parsed_id = _parse_document_id(document_id)
    logger.info(
        "reconcile.request.received",
        document_id=document_id,
        processing_status=body.processing_status.value,
    )
    document = await reconciler.reconcile(
        document_id=parsed_id,
        processing_status=body.processing_status,
        processed_at=body.processed_at,
        workflow_id=body.workflow_id,
    )
    return StatusCallbackResponse(document=DocumentView.from_record(document))


@router.get("", response_model=DocumentPage, tags=["documents"])
async def list_documents(
    doc_type: DocType | None = Query(default=None, alias="docType"),
    status: DocumentStatus | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    service: DocumentQueryService = Depends(get_query_service),
) -> DocumentPage:
    return await service.list_documents(
        DocumentFilter(doc_type=doc_type, status=status),
        page=page,
        limit=limit,
    )


@router.get(
    "/{document_id}",
    response_model=DocumentDetailResponse,
    tags=["documents"],
    responses={404: {"model": ErrorResponse}},
)
async def get_document(
    document_id: str,
    service: DocumentQueryService = Depends(get_query_service),
) -> DocumentDetailResponse:
    document = await service.get_document(_parse_document_id(document_id))
    return DocumentDetailResponse(data=document)
