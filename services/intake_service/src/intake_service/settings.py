from __future__ import annotations

from pydantic import Field
from shared.config.base import BaseServiceSettings


class Settings(BaseServiceSettings):
    service_name: str = "intake_service"

    workflow_webhook_url: str = Field(..., description="External workflow endpoint receiving dispatches")
    workflow_timeout_seconds: float = Field(default=5.0, gt=0, lt=10)
    workflow_source_header: str = Field(default="document-upload")

    max_document_size_mb: int = Field(default=5, ge=1, le=100)
    allowed_content_types: list[str] = Field(
        default=[
            "text/xml",
            "application/xml",
        ]
    )
    default_uploaded_by: str = Field(default="admin")

    cors_allow_origins: list[str] = Field(default=["http://localhost:3000"])
    create_schema_on_startup: bool = Field(default=True)
