"""Pydantic schemas for the LLM parsing endpoints."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from cvbot.schemas.files import CamelModel


class ModelConfig(CamelModel):
    """Per-request model overrides.

    Unknown keys (for example ``provider``, sent by older clients) are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    model: str | None = Field(default=None, description="Model name; defaults to LLM_MODEL.")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0, description="Output token budget.")


class ParseResumeRequest(CamelModel):
    resume_text: str = Field(default="", description="Plain résumé text.")
    endpoint: str | None = Field(default=None, description="Profile endpoint for metadata.endpoint.")
    config: ModelConfig | None = None


class ParsePdfRequest(CamelModel):
    pdf_buffer: str = Field(default="", description="Base64-encoded PDF bytes.")
    endpoint: str | None = None
    config: ModelConfig | None = None


class ParseResumeResponse(CamelModel):
    success: bool = True
    data: Dict[str, Any] = Field(..., description="Profile document matching the profile schema.")
    model: str
    tokens_used: int = 0


class ParsePdfResponse(ParseResumeResponse):
    extracted_text_length: int = Field(..., description="Characters of text read from the document.")
