from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from intake_service.api.dependencies import get_settings
from intake_service.api.routes import router
from intake_service.domain.exceptions import (
    DocumentNotFoundError,
    DocumentTooLargeError,
    DuplicateDocumentError,
    IntakeError,
    InvalidInputError,
    MissingFileError,
    UnsupportedContentTypeError,
)
from intake_service.domain.views import ConflictResponse, DocumentIdentityView
from intake_service.infrastructure.dispatcher import HttpWorkflowDispatcher
from intake_service.infrastructure.repository import SqlDocumentRepository
from shared.logging.config import bind_request_context, clear_request_context, configure_logging
from shared.schemas.base import ErrorResponse, HealthResponse

settings = get_settings()
configure_logging(settings.service_name, settings.log_level)
logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR: dict[type[IntakeError], int] = {
    InvalidInputError: 400,
    MissingFileError: 400,
    DocumentNotFoundError: 404,
    DocumentTooLargeError: 413,
    UnsupportedContentTypeError: 415,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "service.starting",
        version=settings.app_version,
        environment=settings.environment,
        workflow_webhook_url=settings.workflow_webhook_url,
    )

    repository = SqlDocumentRepository(
        database_url=settings.database_url.get_secret_value(),
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
    if settings.create_schema_on_startup:
        try:
            await repository.create_schema()
        except Exception as exc:
            logger.critical("service.startup.failed", component="database", error=str(exc))
            raise

    app.state.repository = repository
    app.state.dispatcher = HttpWorkflowDispatcher(
        webhook_url=settings.workflow_webhook_url,
        source_header=settings.workflow_source_header,
    )

    logger.info("service.ready", port=settings.service_port)
    yield

    await repository.dispose()
    logger.info("service.stopped")


app = FastAPI(
    title="Intake Service",
    description="Records uploaded XML documents once per docNumber and hands them to the processing workflow.",
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
)


@app.middleware("http")
async def correlation_context(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id
    bind_request_context(correlation_id=correlation_id)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def _correlation_id(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


@app.exception_handler(DuplicateDocumentError)
async def handle_duplicate(request: Request, exc: DuplicateDocumentError) -> JSONResponse:
    body = ConflictResponse(
        message=str(exc),
        existing_document=DocumentIdentityView.from_identity(exc.existing),
        correlation_id=_correlation_id(request),
    )
    return JSONResponse(status_code=409, content=body.model_dump(mode="json", by_alias=True))


@app.exception_handler(IntakeError)
async def handle_intake_error(request: Request, exc: IntakeError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    message = str(exc)
    if status_code == 500:
        logger.error("request.failed", error_code=exc.error_code, error=message)
        message = "Internal Server Error"
    else:
        logger.info("request.rejected", error_code=exc.error_code, status_code=status_code)

    body = ErrorResponse(code=exc.error_code, message=message, correlation_id=_correlation_id(request))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err["loc"]) for err in exc.errors()]
    body = ErrorResponse(
        code="INVALID_INPUT",
        message=f"Invalid request: {', '.join(fields)}",
        correlation_id=_correlation_id(request),
    )
    return JSONResponse(status_code=400, content=body.model_dump(mode="json", by_alias=True))


@app.get("/", response_model=HealthResponse, tags=["ops"])
@app.get("/health", response_model=HealthResponse, tags=["ops"])
async def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        service=settings.service_name,
        version=settings.app_version,
    )


app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.service_port, log_config=None)
