"""Request-scoped access to the services attached to the application."""

from __future__ import annotations

from fastapi import Request

from cvbot.services.extraction_service import ProfileExtractionService
from cvbot.services.file_service import FileService


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_extraction_service(request: Request) -> ProfileExtractionService:
    return request.app.state.extraction_service
