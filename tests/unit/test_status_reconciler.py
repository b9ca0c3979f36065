from __future__ import annotations

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from conftest import make_record
from intake_service.domain.exceptions import DocumentNotFoundError
from intake_service.domain.interfaces import DocumentRepositoryPort
from intake_service.domain.models import StatusUpdate
from intake_service.domain.services import StatusReconciler
from shared.schemas.documents import ProcessingStatus


@pytest.fixture
def mock_repository() -> AsyncMock:
    repo = AsyncMock(spec=DocumentRepositoryPort)
    stored = make_record(processing_status=ProcessingStatus.PROCESSING)
    repo.get.return_value = stored
    repo.update_status.side_effect = lambda document_id, update: stored.model_copy(
        update={k: v for k, v in update.model_dump().items() if v is not None}
    )
    return repo


class TestReconcile:
    @pytest.mark.asyncio
    async def test_applies_supplied_fields(self, mock_repository: AsyncMock) -> None:
        document_id = uuid.uuid4()
        processed_at = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)

        result = await StatusReconciler(mock_repository).reconcile(
            document_id, ProcessingStatus.DONE, processed_at=processed_at, workflow_id="wf-9"
        )

        mock_repository.update_status.assert_awaited_once_with(
            document_id,
            StatusUpdate(
                processing_status=ProcessingStatus.DONE,
                processed_at=processed_at,
                workflow_id="wf-9",
            ),
        )
        assert result.processing_status == ProcessingStatus.DONE

    @pytest.mark.asyncio
    async def test_processed_at_defaults_to_now(self, mock_repository: AsyncMock) -> None:
        before = datetime.now(timezone.utc)

        await StatusReconciler(mock_repository).reconcile(uuid.uuid4(), ProcessingStatus.DONE)

        update: StatusUpdate = mock_repository.update_status.await_args.args[1]
        assert update.processed_at is not None
        assert update.processed_at >= before
        assert update.workflow_id is None

    @pytest.mark.asyncio
    async def test_empty_workflow_id_leaves_existing_value(self, mock_repository: AsyncMock) -> None:
        await StatusReconciler(mock_repository).reconcile(
            uuid.uuid4(), ProcessingStatus.ERROR, workflow_id=""
        )

        update: StatusUpdate = mock_repository.update_status.await_args.args[1]
        assert update.workflow_id is None

    @pytest.mark.asyncio
    async def test_backward_transition_is_still_applied(self, mock_repository: AsyncMock) -> None:
        mock_repository.get.return_value = make_record(processing_status=ProcessingStatus.DONE)

        await StatusReconciler(mock_repository).reconcile(uuid.uuid4(), ProcessingStatus.PENDING)

        update: StatusUpdate = mock_repository.update_status.await_args.args[1]
        assert update.processing_status == ProcessingStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_document_raises_without_update(self, mock_repository: AsyncMock) -> None:
        mock_repository.get.return_value = None
        document_id = uuid.uuid4()

        with pytest.raises(DocumentNotFoundError) as exc_info:
            await StatusReconciler(mock_repository).reconcile(document_id, ProcessingStatus.DONE)

        assert exc_info.value.document_id == document_id
        mock_repository.update_status.assert_not_awaited()
