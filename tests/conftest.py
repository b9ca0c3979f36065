from __future__ import annotations

import os
from collections.abc import AsyncIterator
from datetime import datetime
from pathlib import Path

# Settings are read when intake_service.main is imported; keep this above app imports.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./intake-service-test.db")
os.environ.setdefault("WORKFLOW_WEBHOOK_URL", "http://workflow.test/webhook/document")
os.environ.setdefault("CREATE_SCHEMA_ON_STARTUP", "false")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from intake_service.domain.interfaces import WorkflowDispatcherPort  # noqa: E402
from intake_service.domain.models import (  # noqa: E402
    DispatchAccepted,
    DispatchOutcome,
    DocumentRecord,
)
from intake_service.infrastructure.repository import SqlDocumentRepository  # noqa: E402
from shared.events.document_events import DocumentDispatchRequestedEvent  # noqa: E402
from shared.schemas.documents import DocType  # noqa: E402


class StubDispatcher(WorkflowDispatcherPort):
    """Returns a fixed outcome and remembers every event it was handed."""

    def __init__(self, outcome: DispatchOutcome | None = None) -> None:
        self.outcome = outcome or DispatchAccepted(workflow_id="wf-1")
        self.events: list[DocumentDispatchRequestedEvent] = []
        self.timeouts: list[float] = []

    async def dispatch(
        self, event: DocumentDispatchRequestedEvent, timeout: float
    ) -> DispatchOutcome:
        self.events.append(event)
        self.timeouts.append(timeout)
        return self.outcome


def make_record(
    doc_number: str = "SO1001",
    doc_type: DocType = DocType.SALES_ORDER,
    created_at: datetime | None = None,
    **overrides: object,
) -> DocumentRecord:
    fields: dict[str, object] = {
        "doc_number": doc_number,
        "doc_type": doc_type,
        "file_name": f"{doc_number}.xml",
        "file_size_bytes": 128,
        "uploaded_by": "admin",
    }
    if created_at is not None:
        fields["created_at"] = created_at
        fields["updated_at"] = created_at
    fields.update(overrides)
    return DocumentRecord(**fields)


@pytest.fixture
def stub_dispatcher() -> StubDispatcher:
    return StubDispatcher()


@pytest.fixture
def sample_xml() -> bytes:
    return b'<?xml version="1.0" encoding="UTF-8"?><SalesOrder><Number>SO1001</Number></SalesOrder>'


@pytest_asyncio.fixture
async def repository(tmp_path: Path) -> AsyncIterator[SqlDocumentRepository]:
    """File-backed SQLite store so concurrent sessions use separate connections."""
    repo = SqlDocumentRepository(f"sqlite+aiosqlite:///{tmp_path / 'documents.db'}")
    await repo.create_schema()
    yield repo
    await repo.dispose()
