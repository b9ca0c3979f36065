from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    Uuid,
)

from intake_service.domain.models import MAX_DOC_NUMBER_LENGTH

metadata = MetaData()

documents_table = Table(
    "documents",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("doc_number", String(MAX_DOC_NUMBER_LENGTH), nullable=False),
    Column("doc_type", String(8), nullable=False),
    Column("file_name", String(512), nullable=False),
    Column("file_size_bytes", BigInteger, nullable=False),
    Column("uploaded_by", String(255), nullable=False),
    Column("status", String(32), nullable=False),
    Column("processing_status", String(32), nullable=False),
    Column("workflow_id", String(255), nullable=True),
    Column("processed_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("doc_number", name="uq_documents_doc_number"),
    CheckConstraint("file_size_bytes >= 0", name="ck_documents_file_size_non_negative"),
)

Index("ix_documents_created_at", documents_table.c.created_at)
Index("ix_documents_doc_type_status", documents_table.c.doc_type, documents_table.c.status)
