from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from intake_service.domain.exceptions import (
    DocumentNotFoundError,
    DuplicateDocumentError,
    StorageError,
)
from intake_service.domain.interfaces import DocumentRepositoryPort
from intake_service.domain.models import (
    DocumentFilter,
    DocumentIdentity,
    DocumentRecord,
    StatusUpdate,
    utcnow,
)
from intake_service.infrastructure.schema import documents_table, metadata

logger = structlog.get_logger(__name__)

_c = documents_table.c


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is written in UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_row(document: DocumentRecord) -> dict[str, Any]:
    return {
        "id": document.document_id,
        "doc_number": document.doc_number,
        "doc_type": document.doc_type.value,
        "file_name": document.file_name,
        "file_size_bytes": document.file_size_bytes,
        "uploaded_by": document.uploaded_by,
        "status": document.status.value,
        "processing_status": document.processing_status.value,
        "workflow_id": document.workflow_id,
        "processed_at": document.processed_at,
        "created_at": document.created_at,
        "updated_at": document.updated_at,
    }


def _from_row(row: Mapping[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        document_id=row["id"],
        doc_number=row["doc_number"],
        doc_type=row["doc_type"],
        file_name=row["file_name"],
        file_size_bytes=row["file_size_bytes"],
        uploaded_by=row["uploaded_by"],
        status=row["status"],
        processing_status=row["processing_status"],
        workflow_id=row["workflow_id"],
        processed_at=_as_utc(row["processed_at"]),
        created_at=_as_utc(row["created_at"]),
        updated_at=_as_utc(row["updated_at"]),
    )


class SqlDocumentRepository(DocumentRepositoryPort):
    """Document metadata store on SQLAlchemy's async engine.

    doc_number uniqueness is delegated to the uq_documents_doc_number
    constraint, so concurrent inserts of the same number are serialised by
    the database and exactly one commits.
    """

    def __init__(self, database_url: str, pool_size: int = 5, max_overflow: int = 10) -> None:
        engine_options: dict[str, Any] = {}
        if make_url(database_url).get_backend_name() != "sqlite":
            engine_options = {"pool_size": pool_size, "max_overflow": max_overflow}

        self._engine: AsyncEngine = create_async_engine(database_url, **engine_options)
        self._session_factory = sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_schema(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)
        logger.info("repository.schema.ready", table=documents_table.name)

    async def insert_if_absent(self, document: DocumentRecord) -> DocumentRecord:
        try:
            async with self._session_factory() as session:
                await session.execute(documents_table.insert().values(**_to_row(document)))
                await session.commit()
        except IntegrityError as exc:
            existing = await self._find_identity(document.doc_number)
            if existing is None:
                logger.error(
                    "repository.document.insert_failed",
                    doc_number=document.doc_number,
                    error=str(exc.orig),
                )
                raise StorageError(str(exc.orig)) from exc

            logger.info(
                "repository.document.duplicate",
                doc_number=document.doc_number,
                existing_document_id=str(existing.document_id),
            )
            raise DuplicateDocumentError(existing) from None
        except SQLAlchemyError as exc:
            logger.error(
                "repository.document.insert_failed",
                doc_number=document.doc_number,
                error=str(exc),
            )
            raise StorageError(str(exc)) from exc

        logger.debug(
            "repository.document.inserted",
            document_id=str(document.document_id),
            doc_number=document.doc_number,
        )
        return document

    async def update_status(self, document_id: UUID, update: StatusUpdate) -> DocumentRecord:
        values: dict[str, Any] = {"updated_at": utcnow()}
        if update.processing_status is not None:
            values["processing_status"] = update.processing_status.value
        if update.workflow_id is not None:
            values["workflow_id"] = update.workflow_id
        if update.processed_at is not None:
            values["processed_at"] = update.processed_at

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    documents_table.update().where(_c.id == document_id).values(**values)
                )
                if result.rowcount == 0:
                    raise DocumentNotFoundError(document_id)

                row = (
                    await session.execute(select(documents_table).where(_c.id == document_id))
                ).mappings().one()
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error(
                "repository.document.update_failed",
                document_id=str(document_id),
                error=str(exc),
            )
            raise StorageError(str(exc)) from exc

        logger.debug(
            "repository.document.updated",
            document_id=str(document_id),
            fields=sorted(values),
        )
        return _from_row(row)

    async def get(self, document_id: UUID) -> DocumentRecord | None:
        row = await self._fetch_one(select(documents_table).where(_c.id == document_id))
        return _from_row(row) if row else None

    async def list(
        self, filters: DocumentFilter, page: int, page_size: int
    ) -> tuple[list[DocumentRecord], int]:
        conditions = []
        if filters.doc_type is not None:
            conditions.append(_c.doc_type == filters.doc_type.value)
        if filters.status is not None:
            conditions.append(_c.status == filters.status.value)

        count_stmt = select(func.count()).select_from(documents_table).where(*conditions)
        offset = (page - 1) * page_size

        try:
            async with self._session_factory() as session:
                total = (await session.execute(count_stmt)).scalar_one()
                # Pages past the end never reach the database as an OFFSET.
                if offset >= total:
                    return [], total
                page_stmt = (
                    select(documents_table)
                    .where(*conditions)
                    .order_by(_c.created_at.desc(), _c.doc_number.desc())
                    .offset(offset)
                    .limit(page_size)
                )
                rows = (await session.execute(page_stmt)).mappings().all()
        except SQLAlchemyError as exc:
            logger.error("repository.documents.list_failed", error=str(exc))
            raise StorageError(str(exc)) from exc

        return [_from_row(row) for row in rows], total

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def _find_identity(self, doc_number: str) -> DocumentIdentity | None:
        row = await self._fetch_one(select(documents_table).where(_c.doc_number == doc_number))
        return _from_row(row).identity() if row else None

    async def _fetch_one(self, stmt: Any) -> Mapping[str, Any] | None:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.mappings().first()
        except SQLAlchemyError as exc:
            logger.error("repository.document.read_failed", error=str(exc))
            raise StorageError(str(exc)) from exc
