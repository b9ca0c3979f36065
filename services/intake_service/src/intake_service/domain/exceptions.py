from __future__ import annotations

from uuid import UUID

from intake_service.domain.models import DocumentIdentity


class IntakeError(Exception):
    def __init__(self, message: str, error_code: str) -> None:
        super().__init__(message)
        self.error_code = error_code


class InvalidInputError(IntakeError):
    def __init__(self, detail: str) -> None:
        super().__init__(message=detail, error_code="INVALID_INPUT")


class MissingFileError(IntakeError):
    def __init__(self) -> None:
        super().__init__(message="No file uploaded.", error_code="NO_FILE")


class UnsupportedContentTypeError(IntakeError):
    def __init__(self, content_type: str) -> None:
        super().__init__(
            message=f"Content type '{content_type}' is not supported. Only XML files are allowed.",
            error_code="UNSUPPORTED_CONTENT_TYPE",
        )


class DocumentTooLargeError(IntakeError):
    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        super().__init__(
            message=f"Document size {size_bytes} bytes exceeds limit {limit_bytes} bytes.",
            error_code="DOCUMENT_TOO_LARGE",
        )


class DuplicateDocumentError(IntakeError):
    def __init__(self, existing: DocumentIdentity) -> None:
        super().__init__(
            message=f"Document {existing.doc_number} already exists",
            error_code="DOCUMENT_EXISTS",
        )
        self.existing = existing


class DocumentNotFoundError(IntakeError):
    def __init__(self, document_id: UUID | str) -> None:
        super().__init__(
            message=f"Document {document_id} not found",
            error_code="DOCUMENT_NOT_FOUND",
        )
        self.document_id = document_id


class StorageError(IntakeError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            message=f"Storage operation failed: {detail}",
            error_code="STORAGE_ERROR",
        )
