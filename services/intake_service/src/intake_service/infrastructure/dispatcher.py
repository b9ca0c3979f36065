from __future__ import annotations

import asyncio

import httpx
import structlog

from intake_service.domain.interfaces import WorkflowDispatcherPort
from intake_service.domain.models import DispatchAccepted, DispatchFailed, DispatchOutcome
from shared.events.document_events import DocumentDispatchRequestedEvent

logger = structlog.get_logger(__name__)


class HttpWorkflowDispatcher(WorkflowDispatcherPort):
    """POSTs dispatch events to the external workflow webhook.

    The whole exchange (connect, send, read) runs under one asyncio.timeout,
    so a slow endpoint yields DispatchFailed instead of holding the request.
    """

    def __init__(
        self,
        webhook_url: str,
        source_header: str = "document-upload",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._source_header = source_header
        self._transport = transport

    async def dispatch(
        self, event: DocumentDispatchRequestedEvent, timeout: float
    ) -> DispatchOutcome:
        log = logger.bind(
            correlation_id=event.correlation_id,
            document_id=str(event.document_id),
            event_id=str(event.event_id),
        )
        log.info("dispatch.request.sending", url=self._webhook_url, timeout_seconds=timeout)

        try:
            async with asyncio.timeout(timeout):
                async with httpx.AsyncClient(
                    transport=self._transport, timeout=timeout
                ) as client:
                    response = await client.post(
                        self._webhook_url,
                        json=event.model_dump(mode="json", by_alias=True),
                        headers={
                            "X-Source": self._source_header,
                            "X-Correlation-ID": event.correlation_id,
                        },
                    )
        except (TimeoutError, httpx.TimeoutException):
            log.warning("dispatch.request.timed_out", timeout_seconds=timeout)
            return DispatchFailed(reason=f"timed out after {timeout}s")
        except httpx.HTTPError as exc:
            log.warning("dispatch.request.failed", error=str(exc), error_type=type(exc).__name__)
            return DispatchFailed(reason=str(exc) or type(exc).__name__)

        if not response.is_success:
            log.warning("dispatch.request.rejected", status_code=response.status_code)
            return DispatchFailed(reason=f"HTTP {response.status_code}")

        workflow_id = _extract_workflow_id(response)
        log.info(
            "dispatch.request.accepted",
            status_code=response.status_code,
            workflow_id=workflow_id,
        )
        return DispatchAccepted(workflow_id=workflow_id)


def _extract_workflow_id(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None

    if not isinstance(body, dict):
        return None

    workflow_id = body.get("workflowId")
    if workflow_id is None or workflow_id == "":
        return None
    return str(workflow_id)
