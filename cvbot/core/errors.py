"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    file_class: str
    filename: str
    endpoint: str
    mime_type: str
    allowed: list[str]
    max_bytes: int
    actual_bytes: int
    model: str
    path: str
    response_length: int
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when caller input fails validation (missing field, bad MIME type, oversize)."""


class NotFoundAppError(AppError):
    """Raised when a stored file or a required resource does not exist."""


class ConfigurationAppError(AppError):
    """Raised when the service is missing required configuration (e.g. API key)."""


@dataclass
class UpstreamAppError(AppError):
    """Raised when a downstream step fails (model API, document extraction, model output).

    ``client_fault`` marks failures caused by the caller's input, such as an
    unreadable PDF, which are reported as 400 instead of 500.
    """

    client_fault: bool = False
