"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers and the
services routes depend on) so tests can inject fakes for storage and the LLM.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cvbot.adapters.storage.base import AbstractUploadStore
from cvbot.adapters.storage.local import LocalUploadStore
from cvbot.api.routes import files_router, health_router, parse_router, profile_router
from cvbot.core.config import settings
from cvbot.core.exception_handlers import setup_exception_handlers
from cvbot.core.logging import configure_logging
from cvbot.core.middleware import BodySizeLimitMiddleware, request_id_middleware
from cvbot.core.openapi import apply_openapi_customizations
from cvbot.services.extraction_service import ProfileExtractionService
from cvbot.services.file_service import FileService

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    return [origin.strip() for origin in settings.app.cors_allow_origins.split(",") if origin.strip()]


def create_app(
    upload_store: AbstractUploadStore | None = None,
    extraction_service: ProfileExtractionService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        upload_store: Storage for uploads; defaults to the local directories
            from ``StorageSettings``.
        extraction_service: Résumé extraction service; defaults to one whose
            LLM client is built from ``LLMSettings`` on first use.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="CVBot Backend",
        description=(
            "Stores CV documents and profile photos per profile endpoint and turns "
            "résumés (text, PDF, DOCX or TXT) into structured profile JSON using an LLM."
        ),
        version="1.0.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    if upload_store is None:
        upload_store = LocalUploadStore.from_root(
            settings.storage.resolved_root(),
            cv_dir=settings.storage.cv_dir,
            photo_dir=settings.storage.photo_dir,
        )
    app.state.file_service = FileService(
        upload_store,
        max_upload_bytes=settings.storage.max_upload_size_mb * 1024 * 1024,
    )
    app.state.extraction_service = extraction_service or ProfileExtractionService()

    # Middleware; the last one registered runs first
    app.add_middleware(BodySizeLimitMiddleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(files_router)
    app.include_router(parse_router)
    app.include_router(profile_router)
    app.include_router(health_router)

    # OpenAPI customizations (tags)
    apply_openapi_customizations(app)

    logger.info(
        "app.created",
        extra={
            "app_env": settings.app_env,
            "store": type(upload_store).__name__,
            "llm_provider": settings.llm.provider,
        },
    )
    return app
