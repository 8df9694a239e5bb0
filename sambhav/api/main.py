from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sambhav.api.routers import auth, finance
from sambhav.api.schemas import fail
from sambhav.auth import CredentialGate, MissingCredentialsError, UnauthorizedError
from sambhav.config import get_settings
from sambhav.ledger import LedgerInputError
from sambhav.logging_setup import configure_logging, get_logger
from sambhav.orchestrator import RecordService, create_app_components
from sambhav.services.image import (
    BlobStoreError,
    BlobTooLargeError,
    BlobUploadError,
    UnsupportedFormatError,
)
from sambhav.services.storage import NotFoundError, RecordValidationError, StorageError

logger = get_logger(__name__)


def _handler(status_code: int, message: str, headers: Optional[dict] = None):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        if status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            content = fail(message, error=str(exc))
        else:
            content = fail(str(exc) or message)
        return JSONResponse(status_code=status_code, content=content, headers=headers)
    return handle


def _register_error_handlers(app: FastAPI) -> None:
    # Starlette uses the handler of the nearest class in the exception MRO
    app.add_exception_handler(
        UnauthorizedError,
        _handler(401, "Unauthorized", headers={"WWW-Authenticate": "Bearer"}),
    )
    app.add_exception_handler(MissingCredentialsError, _handler(400, "Missing credentials"))
    app.add_exception_handler(NotFoundError, _handler(404, "Record not found"))
    app.add_exception_handler(RecordValidationError, _handler(400, "Invalid record"))
    app.add_exception_handler(BlobTooLargeError, _handler(400, "Error uploading file"))
    app.add_exception_handler(UnsupportedFormatError, _handler(400, "Error uploading file"))
    app.add_exception_handler(BlobUploadError, _handler(502, "Error uploading file"))
    app.add_exception_handler(BlobStoreError, _handler(502, "Bill storage error"))
    app.add_exception_handler(LedgerInputError, _handler(500, "Error building ledger"))
    app.add_exception_handler(StorageError, _handler(500, "Error accessing records"))


def create_app(
    service: Optional[RecordService] = None,
    gate: Optional[CredentialGate] = None,
) -> FastAPI:
    """
    Build the API app.

    service and gate are built from settings at startup when not given,
    so importing this module does not need any configuration.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        if app.state.service is None:
            app.state.service, _ = create_app_components(use_storage=True)
        if app.state.gate is None:
            app.state.gate = CredentialGate.from_settings()
        logger.info("api_started", environment=get_settings().app.app_environment)
        yield

    app = FastAPI(
        title="SAMBHAV – Finance Ledger API",
        description="Bill records, uploads and the per-client ledger view.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service
    app.state.gate = gate

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().app.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(finance.router, prefix="/api/finance", tags=["finance"])

    @app.get("/api/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
