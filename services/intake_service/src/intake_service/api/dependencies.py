from __future__ import annotations

from functools import lru_cache

from fastapi import Request

from intake_service.domain.interfaces import DocumentRepositoryPort, WorkflowDispatcherPort
from intake_service.domain.services import DocumentQueryService, IntakeService, StatusReconciler
from intake_service.settings import Settings


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_repository(request: Request) -> DocumentRepositoryPort:
    return request.app.state.repository


def get_dispatcher(request: Request) -> WorkflowDispatcherPort:
    return request.app.state.dispatcher


def get_intake_service(request: Request) -> IntakeService:
    return IntakeService(
        repository=get_repository(request),
        dispatcher=get_dispatcher(request),
        dispatch_timeout_seconds=get_settings().workflow_timeout_seconds,
    )


def get_status_reconciler(request: Request) -> StatusReconciler:
    return StatusReconciler(repository=get_repository(request))


def get_query_service(request: Request) -> DocumentQueryService:
    return DocumentQueryService(repository=get_repository(request))
