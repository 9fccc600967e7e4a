from __future__ import annotations

import base64
import binascii
import os

from fastapi import APIRouter, Depends, File, Form, UploadFile

from cvbot.api.dependencies import get_extraction_service
from cvbot.core.errors import ValidationAppError
from cvbot.core.file_validation import read_upload_file_limited
from cvbot.schemas.parse import (
    ModelConfig,
    ParsePdfRequest,
    ParsePdfResponse,
    ParseResumeRequest,
    ParseResumeResponse,
)
from cvbot.services.extraction_service import ProfileExtractionService
from cvbot.utils.file_validators import get_document_type_from_mime

router = APIRouter(prefix="/api", tags=["Parsing"])

_EXTENSION_TYPES = {".pdf": "pdf", ".docx": "docx", ".txt": "txt"}


def _decode_pdf_buffer(pdf_buffer: str) -> bytes:
    """Decode the base64 payload, accepting an optional data-URL prefix."""
    payload = pdf_buffer.strip()
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    # MIME-style line wrapping
    payload = "".join(payload.split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationAppError(
            code="invalid_pdf_buffer",
            message="PDF buffer is not valid base64",
        ) from exc


@router.post("/parse-resume-llm", response_model=ParseResumeResponse)
async def parse_resume(
    payload: ParseResumeRequest,
    service: ProfileExtractionService = Depends(get_extraction_service),
) -> ParseResumeResponse:
    """Convert plain résumé text into a profile document."""
    result = await service.extract(payload.resume_text, payload.endpoint, payload.config)
    return ParseResumeResponse(data=result.data, model=result.model, tokens_used=result.tokens_used)


@router.post("/parse-pdf-llm", response_model=ParsePdfResponse)
async def parse_pdf(
    payload: ParsePdfRequest,
    service: ProfileExtractionService = Depends(get_extraction_service),
) -> ParsePdfResponse:
    """Read a base64-encoded PDF and convert its text into a profile document."""
    if not payload.pdf_buffer.strip():
        raise ValidationAppError(code="pdf_buffer_required", message="PDF buffer is required")

    data = _decode_pdf_buffer(payload.pdf_buffer)
    result = await service.extract(data, payload.endpoint, payload.config)
    return ParsePdfResponse(
        data=result.data,
        model=result.model,
        tokens_used=result.tokens_used,
        extracted_text_length=result.extracted_text_length,
    )


@router.post("/parse-file-llm", response_model=ParsePdfResponse)
async def parse_file(
    resume_file: UploadFile | None = File(default=None, alias="resumeFile"),
    endpoint: str | None = Form(default=None),
    model: str | None = Form(default=None),
    temperature: float | None = Form(default=None, ge=0.0, le=2.0),
    max_tokens: int | None = Form(default=None, alias="maxTokens", gt=0),
    service: ProfileExtractionService = Depends(get_extraction_service),
) -> ParsePdfResponse:
    """Convert an uploaded PDF, DOCX or TXT résumé into a profile document.

    The document type comes from the declared MIME type, or from the filename
    extension when the client sends a generic type.
    """
    if resume_file is None or not resume_file.filename:
        raise ValidationAppError(code="file_required", message="No resume file uploaded")

    document_type = get_document_type_from_mime(resume_file.content_type or "")
    if document_type is None:
        document_type = _EXTENSION_TYPES.get(os.path.splitext(resume_file.filename)[1].lower())
    if document_type is None:
        raise ValidationAppError(
            code="unsupported_document_type",
            message="Unsupported file type. Only PDF, DOCX, and TXT files can be parsed.",
            details={"mime_type": resume_file.content_type or "", "filename": resume_file.filename},
        )

    data = await read_upload_file_limited(resume_file)
    config = ModelConfig(model=model or None, temperature=temperature, max_tokens=max_tokens)
    result = await service.extract_document(data, document_type, endpoint, config)
    return ParsePdfResponse(
        data=result.data,
        model=result.model,
        tokens_used=result.tokens_used,
        extracted_text_length=result.extracted_text_length,
    )
