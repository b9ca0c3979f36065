from shared.events.base import BaseEvent
from shared.events.document_events import DocumentDispatchRequestedEvent

__all__ = [
    "BaseEvent",
    "DocumentDispatchRequestedEvent",
]
