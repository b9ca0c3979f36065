from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from pydantic import Field

from shared.schemas.base import CamelModel


class BaseEvent(CamelModel):
    event_id: UUID = Field(default_factory=uuid4)
    correlation_id: str
    timestamp_utc: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    schema_version: str = "1.0"
