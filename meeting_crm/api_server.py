"""
FastAPI API Server.

REST API for extracting CRM data from meeting notes and syncing it to
HubSpot.

Start with:
    uvicorn meeting_crm.api_server:app --reload --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
load_dotenv(".env.local")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meeting_crm.api.extractions import router as extractions_router
from meeting_crm.api.hubspot import router as hubspot_router
from meeting_crm.api.middleware import RequestIdMiddleware
from meeting_crm.config import Settings, get_settings
from meeting_crm.errors import (
    ConfigurationError,
    ExtractionFailed,
    NotFound,
    ValidationError,
)
from meeting_crm.logging_config import get_logger, setup_logging
from meeting_crm.services.completion import CompletionClient
from meeting_crm.services.hubspot import HubSpotClient
from meeting_crm.storage.base import Storage
from meeting_crm.storage.factory import build_storage

setup_logging()
logger = get_logger(__name__)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "path": ".".join(str(part) for part in err["loc"] if part != "body") or "<root>",
                "message": err["msg"],
                "type": err["type"],
            }
            for err in exc.errors()
        ]
        return JSONResponse(status_code=400, content={"message": "Invalid request body", "errors": errors})

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": exc.message, "errors": exc.errors})

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"message": str(exc)})

    @app.exception_handler(ExtractionFailed)
    async def extraction_failed_handler(request: Request, exc: ExtractionFailed) -> JSONResponse:
        logger.error("extraction_failed", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"message": str(exc)})

    @app.exception_handler(ConfigurationError)
    async def configuration_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.error("configuration_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content={"message": str(exc)})


def create_app(
    settings: Settings | None = None,
    storage: Storage | None = None,
    completion: CompletionClient | None = None,
    hubspot: HubSpotClient | None = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators not passed in are built from settings: storage at
    startup, the OpenAI and HubSpot clients on first use.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("api_server_starting", storage_backend=settings.storage_backend.value)
        yield
        for client in (app.state.completion, app.state.hubspot):
            if client is not None:
                await client.aclose()
        logger.info("api_server_stopping")

    app = FastAPI(
        title="Meeting CRM Sync API",
        description="Extract contacts, companies and deals from meeting notes and sync them to HubSpot",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.storage = storage if storage is not None else build_storage(settings)
    app.state.completion = completion
    app.state.hubspot = hubspot

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(extractions_router)
    app.include_router(hubspot_router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "meeting-crm-sync"}

    return app


app = create_app()
