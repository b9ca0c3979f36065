from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from conftest import make_record
from intake_service.domain.views import (
    DocumentIdentityView,
    DocumentView,
    Pagination,
    StatusCallbackRequest,
    UploadedDocumentView,
)
from shared.schemas.documents import ProcessingStatus


class TestDocumentView:
    def test_renames_storage_fields_to_external_contract(self) -> None:
        processed_at = datetime(2024, 3, 1, tzinfo=timezone.utc)
        record = make_record(
            file_size_bytes=2048,
            workflow_id="wf-1",
            processing_status=ProcessingStatus.DONE,
            processed_at=processed_at,
        )

        payload = DocumentView.from_record(record).model_dump(by_alias=True)

        assert payload["id"] == record.document_id
        assert payload["docNumber"] == "SO1001"
        assert payload["docType"] == "SO"
        assert payload["fileName"] == "SO1001.xml"
        assert payload["fileSize"] == 2048
        assert payload["processingStatus"] == "DONE"
        assert payload["processedAt"] == processed_at
        assert payload["workflowId"] == "wf-1"
        assert payload["uploadedBy"] == "admin"
        assert "updatedAt" in payload

    def test_storage_names_do_not_leak(self) -> None:
        payload = DocumentView.from_record(make_record()).model_dump(mode="json", by_alias=True)

        assert not {"file_name", "file_size_bytes", "document_id", "processing_status"} & set(payload)

    def test_upload_view_is_a_subset(self) -> None:
        payload = UploadedDocumentView.from_record(make_record()).model_dump(by_alias=True)

        assert set(payload) == {
            "id",
            "docNumber",
            "docType",
            "fileName",
            "status",
            "processingStatus",
            "workflowId",
        }

    def test_identity_view(self) -> None:
        record = make_record()

        payload = DocumentIdentityView.from_identity(record.identity()).model_dump(by_alias=True)

        assert payload["id"] == record.document_id
        assert payload["createdAt"] == record.created_at
        assert payload["processingStatus"] == "PENDING"


class TestPagination:
    @pytest.mark.parametrize(
        ("page", "limit", "total", "pages"),
        [
            (1, 10, 0, 0),
            (1, 10, 5, 1),
            (100, 10, 5, 1),
            (2, 10, 10, 1),
            (1, 10, 11, 2),
            (1, 3, 10, 4),
        ],
    )
    def test_pages_is_ceiling_of_total_over_limit(
        self, page: int, limit: int, total: int, pages: int
    ) -> None:
        pagination = Pagination.compute(page=page, limit=limit, total=total)

        assert pagination.pages == pages
        assert pagination.page == page
        assert pagination.total == total


class TestStatusCallbackRequest:
    def test_parses_camel_case_and_ignores_extra_keys(self) -> None:
        body = StatusCallbackRequest.model_validate(
            {
                "processingStatus": "DONE",
                "processedAt": "2024-03-01T10:00:00Z",
                "workflowId": "wf-7",
                "processedData": {"lines": 4},
            }
        )

        assert body.processing_status == ProcessingStatus.DONE
        assert body.processed_at == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        assert body.workflow_id == "wf-7"

    def test_rejects_unknown_status(self) -> None:
        with pytest.raises(ValidationError):
            StatusCallbackRequest.model_validate({"processingStatus": "ARCHIVED"})
