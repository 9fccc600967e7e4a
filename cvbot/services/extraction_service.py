"""Schema-guided résumé extraction.

Turns résumé text (typed, or read from a PDF/DOCX/TXT document) into a
profile JSON document by embedding the profile schema in a single prompt,
calling the configured model once and recovering the JSON object from its
reply. Every failure ends the request: there is no retry and no partial
result.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Literal

from cvbot.adapters.llm.base import AbstractLLMClient
from cvbot.adapters.llm.factory import create_llm_client
from cvbot.core.config import settings
from cvbot.core.errors import UpstreamAppError, ValidationAppError
from cvbot.schemas.parse import ModelConfig
from cvbot.schemas.profile_schema import load_profile_schema
from cvbot.utils.docx_extractor import extract_text_from_docx_bytes
from cvbot.utils.file_validators import DocumentType, validate_file_signature, validate_zip_safety
from cvbot.utils.json_extraction import JSONExtractionError, extract_json_object
from cvbot.utils.pdf_extractor import extract_text_from_pdf_bytes
from cvbot.utils.text_normalizer import normalize_text

logger = logging.getLogger(__name__)

SourceKind = Literal["text", "pdf", "docx", "txt"]

PROFILE_VERSION = "1.0.0"
DEFAULT_ENDPOINT = "default"

SYSTEM_PROMPT = (
    "You are an expert resume parser that extracts structured data from resumes. "
    "Always return valid JSON that matches the provided schema."
)
DOCUMENT_SYSTEM_PROMPT = SYSTEM_PROMPT + " Handle PDF text extraction artifacts gracefully."

UPDATED_BY: dict[SourceKind, str] = {
    "text": "LLM Parser",
    "pdf": "LLM PDF Parser",
    "docx": "LLM File Parser",
    "txt": "LLM File Parser",
}

_DOCUMENT_LABELS: dict[DocumentType, str] = {
    "pdf": "PDF",
    "docx": "DOCX",
    "txt": "text file",
}


@dataclass(frozen=True)
class ExtractionResult:
    """Normalized profile plus accounting for one extraction."""

    data: dict[str, Any]
    model: str
    tokens_used: int
    extracted_text_length: int
    source_kind: SourceKind


def _text_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8", errors="ignore")).hexdigest()[:16]


def resolve_endpoint(endpoint: str | None) -> str:
    endpoint = (endpoint or "").strip()
    return endpoint or DEFAULT_ENDPOINT


def build_prompt(
    resume_text: str,
    schema: dict[str, Any],
    endpoint: str,
    *,
    from_document: bool = False,
) -> str:
    """Build the extraction prompt.

    Args:
        resume_text: Résumé text, embedded verbatim.
        schema: Profile JSON schema, embedded verbatim.
        endpoint: Value the model should put in ``metadata.endpoint``.
        from_document: Add a note about text-extraction artifacts.

    Returns:
        Prompt string for the model.
    """
    rules = [
        "Return ONLY valid JSON that matches the schema structure",
        "Use null for missing optional fields",
        "For dates, use YYYY-MM-DD format",
        "For arrays, return empty arrays [] if no data is found",
        "Be as accurate as possible with the data extraction",
        "If a field is required but not found in the resume, make a reasonable inference or use a default value",
        f'For the endpoint field in metadata, use: "{endpoint}"',
    ]
    if from_document:
        rules.append(
            "The text was extracted from a document, so there might be formatting artifacts - "
            "ignore them and focus on the content"
        )
    numbered = "\n".join(f"{index}. {rule}" for index, rule in enumerate(rules, start=1))
    source = "resume text extracted from a document" if from_document else "resume text"

    return (
        f"You are an expert resume parser. Parse the following {source} and extract structured data "
        "according to the provided JSON schema.\n\n"
        f"IMPORTANT INSTRUCTIONS:\n{numbered}\n\n"
        f"JSON SCHEMA:\n{json.dumps(schema, indent=2, ensure_ascii=False)}\n\n"
        f"RESUME TEXT TO PARSE:\n{resume_text}\n\n"
        "Return the parsed data as valid JSON:"
    )


def _fill(target: dict[str, Any], key: str, value: Any) -> None:
    if target.get(key) is None:
        target[key] = value


def _as_dict(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def normalize_profile(
    data: dict[str, Any],
    endpoint: str,
    updated_by: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Fill the metadata and media blocks of an extracted profile.

    Values already present (from the model) are kept, except
    ``metadata.endpoint`` which always reflects the request.

    Args:
        data: Profile object parsed from the model reply.
        endpoint: Resolved request endpoint.
        updated_by: Parser label stored in ``metadata.updatedBy``.
        now: Timestamp to use; defaults to the current UTC time.

    Returns:
        A new dict; ``data`` is not modified.
    """
    profile = dict(data)
    timestamp = (now or datetime.now(timezone.utc)).isoformat()

    metadata = _as_dict(profile.get("metadata"))
    _fill(metadata, "version", PROFILE_VERSION)
    _fill(metadata, "lastUpdated", timestamp)
    _fill(metadata, "created", timestamp)
    _fill(metadata, "updatedBy", updated_by)
    _fill(metadata, "tags", [])
    metadata["endpoint"] = endpoint
    profile["metadata"] = metadata

    media = _as_dict(profile.get("media"))
    if not isinstance(media.get("profilePhoto"), dict):
        media["profilePhoto"] = {"url": "", "alt": "Profile photo"}
    documents = _as_dict(media.get("documents"))
    if not isinstance(documents.get("cvPdf"), dict):
        documents["cvPdf"] = {"url": "", "filename": ""}
    media["documents"] = documents
    profile["media"] = media

    return profile


def _extract_text_by_type(data: bytes, document_type: DocumentType) -> tuple[str, dict]:
    if document_type == "pdf":
        return extract_text_from_pdf_bytes(data)
    if document_type == "docx":
        return extract_text_from_docx_bytes(data)
    return data.decode("utf-8-sig", errors="replace"), {}


async def _extract_text_with_timeout(data: bytes, document_type: DocumentType) -> tuple[str, dict]:
    """Run the synchronous extractor in a worker thread with a timeout.

    Raises:
        asyncio.TimeoutError: If extraction exceeds the configured timeout.
    """
    loop = asyncio.get_running_loop()
    return await asyncio.wait_for(
        loop.run_in_executor(None, _extract_text_by_type, data, document_type),
        timeout=settings.app.file_extraction_timeout_seconds,
    )


class ProfileExtractionService:
    """Extract structured profiles from résumés using an LLM.

    The LLM client is resolved lazily, so input validation errors are reported
    before a missing API key is.

    Attributes:
        schema_path: Location of the profile schema.
        default_model: Model used when the request does not override it.
        default_temperature: Temperature used when the request does not override it.
        default_max_tokens: Output budget used when the request does not override it.
    """

    def __init__(
        self,
        llm: AbstractLLMClient | None = None,
        *,
        llm_factory: Callable[[], AbstractLLMClient] = create_llm_client,
        schema_path: Path | None = None,
        default_model: str | None = None,
        default_temperature: float | None = None,
        default_max_tokens: int | None = None,
    ) -> None:
        self._llm = llm
        self._llm_factory = llm_factory
        self.schema_path = Path(schema_path or settings.app.profile_schema_path)
        self.default_model = default_model or settings.llm.model
        self.default_temperature = (
            default_temperature if default_temperature is not None else settings.llm.temperature
        )
        self.default_max_tokens = default_max_tokens or settings.llm.max_tokens

    @property
    def llm(self) -> AbstractLLMClient:
        """The model client, created from configuration on first use.

        Raises:
            ConfigurationAppError: If the provider is not configured.
        """
        if self._llm is None:
            self._llm = self._llm_factory()
        return self._llm

    async def read_document(self, data: bytes, document_type: DocumentType) -> str:
        """Validate a document and return its normalized text.

        Raises:
            ValidationAppError: If the document is empty.
            UpstreamAppError: If the document cannot be read or holds no text
                (flagged as a caller fault).
        """
        label = _DOCUMENT_LABELS[document_type]
        if not data:
            raise ValidationAppError(code="empty_document", message=f"The {label} is empty")

        def unreadable(reason: str) -> UpstreamAppError:
            return UpstreamAppError(
                code="unreadable_document",
                message=reason,
                details={"context": {"document_type": document_type, "size_bytes": len(data)}},
                client_fault=True,
            )

        if not validate_file_signature(data, document_type):
            raise unreadable(f"Failed to extract text from {label}: content does not match the declared type")

        if document_type == "docx":
            try:
                validate_zip_safety(data)
            except ValueError as exc:
                raise unreadable(f"Failed to extract text from {label}: {exc}") from exc

        try:
            raw_text, meta = await _extract_text_with_timeout(data, document_type)
        except asyncio.TimeoutError:
            logger.warning(
                "extract.document_timeout",
                extra={
                    "document_type": document_type,
                    "timeout_seconds": settings.app.file_extraction_timeout_seconds,
                },
            )
            raise unreadable(f"Failed to extract text from {label}: extraction timed out") from None
        except Exception as exc:
            logger.warning(
                "extract.document_failed",
                extra={"document_type": document_type, "error_type": type(exc).__name__},
            )
            raise unreadable(f"Failed to extract text from {label}: {exc}") from exc

        text = normalize_text(raw_text)
        if not text:
            raise unreadable(f"No readable text found in {label}")

        logger.info(
            "extract.document_read",
            extra={
                "document_type": document_type,
                "size_bytes": len(data),
                "char_count": len(text),
                "meta": meta,
            },
        )
        return text

    async def extract(
        self,
        source: str | bytes,
        endpoint: str | None = None,
        model_config: ModelConfig | None = None,
    ) -> ExtractionResult:
        """Extract a profile from résumé text or PDF bytes.

        Args:
            source: Résumé text, or the raw bytes of a PDF.
            endpoint: Profile endpoint stamped into ``metadata.endpoint``.
            model_config: Optional per-request model overrides.

        Returns:
            ExtractionResult with the normalized profile.

        Raises:
            ValidationAppError: Empty input.
            UpstreamAppError: Unreadable PDF, model failure, empty or
                unparsable model output.
            ConfigurationAppError: Model provider not configured.
            NotFoundAppError: Profile schema missing.
        """
        if isinstance(source, (bytes, bytearray)):
            return await self.extract_document(bytes(source), "pdf", endpoint, model_config)
        return await self._extract_text(source, endpoint, model_config, "text")

    async def extract_document(
        self,
        data: bytes,
        document_type: DocumentType,
        endpoint: str | None = None,
        model_config: ModelConfig | None = None,
    ) -> ExtractionResult:
        """Extract a profile from a PDF, DOCX or plain-text document."""
        text = await self.read_document(data, document_type)
        return await self._extract_text(text, endpoint, model_config, document_type)

    async def _extract_text(
        self,
        text: str | None,
        endpoint: str | None,
        model_config: ModelConfig | None,
        source_kind: SourceKind,
    ) -> ExtractionResult:
        if not text or not text.strip():
            raise ValidationAppError(code="empty_input", message="Resume text is required")

        endpoint = resolve_endpoint(endpoint)
        config = model_config or ModelConfig()
        model = config.model or self.default_model
        temperature = config.temperature if config.temperature is not None else self.default_temperature
        max_tokens = config.max_tokens if config.max_tokens is not None else self.default_max_tokens

        schema = load_profile_schema(self.schema_path)
        llm = self.llm
        from_document = source_kind != "text"

        logger.info(
            "extract.start",
            extra={
                "source_kind": source_kind,
                "endpoint": endpoint,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "char_count": len(text),
                "text_hash": _text_hash(text),
            },
        )

        completion = await llm.complete(
            system_prompt=DOCUMENT_SYSTEM_PROMPT if from_document else SYSTEM_PROMPT,
            user_prompt=build_prompt(text, schema, endpoint, from_document=from_document),
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        response_text = completion.text
        if not response_text or not response_text.strip():
            raise UpstreamAppError(
                code="empty_model_response",
                message="No response from model",
                details={"model": model},
            )

        logger.info(
            "extract.model_response",
            extra={
                "model": model,
                "response_length": len(response_text),
                "total_tokens": completion.total_tokens,
            },
        )

        try:
            parsed = extract_json_object(response_text)
        except JSONExtractionError as exc:
            logger.error(
                "extract.unparsable_output",
                extra={
                    "model": model,
                    "response_length": len(response_text),
                    "response_hash": _text_hash(response_text),
                },
            )
            raise UpstreamAppError(
                code="unparsable_model_output",
                message="Failed to parse LLM response as JSON",
                details={"model": model, "response_length": len(response_text)},
            ) from exc

        profile = normalize_profile(parsed, endpoint, UPDATED_BY[source_kind])

        logger.info(
            "extract.success",
            extra={
                "source_kind": source_kind,
                "endpoint": endpoint,
                "model": model,
                "sections": sorted(profile.keys()),
                "total_tokens": completion.total_tokens,
            },
        )

        return ExtractionResult(
            data=profile,
            model=model,
            tokens_used=completion.total_tokens,
            extracted_text_length=len(text),
            source_kind=source_kind,
        )
