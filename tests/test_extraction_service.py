"""Tests for the schema-guided extraction service.

The model is replaced by ``FakeLLM`` (see conftest) so prompts and model
parameters can be inspected without network access.
"""

import asyncio
import io
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from docx import Document
from pypdf import PdfWriter

from cvbot.core.errors import ConfigurationAppError, NotFoundAppError, UpstreamAppError, ValidationAppError
from cvbot.schemas.parse import ModelConfig
from cvbot.services.extraction_service import (
    DOCUMENT_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    ProfileExtractionService,
    build_prompt,
    normalize_profile,
)

from conftest import FakeLLM


def _blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _docx(*paragraphs: str) -> bytes:
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


class TestBuildPrompt:
    def test_embeds_schema_text_and_endpoint(self):
        schema = {"type": "object", "properties": {"summary": {"type": "object"}}}
        prompt = build_prompt("Jane Doe\nData Engineer", schema, "jane")

        assert json.dumps(schema, indent=2) in prompt
        assert "Jane Doe\nData Engineer" in prompt
        assert 'For the endpoint field in metadata, use: "jane"' in prompt
        assert "YYYY-MM-DD" in prompt
        assert "formatting artifacts" not in prompt

    def test_document_prompt_mentions_artifacts(self):
        prompt = build_prompt("text", {}, "default", from_document=True)
        assert "formatting artifacts" in prompt


class TestNormalizeProfile:
    NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_fills_missing_metadata_and_media(self):
        profile = normalize_profile({"summary": {}}, "jane", "LLM Parser", now=self.NOW)

        assert profile["metadata"] == {
            "version": "1.0.0",
            "lastUpdated": self.NOW.isoformat(),
            "created": self.NOW.isoformat(),
            "updatedBy": "LLM Parser",
            "tags": [],
            "endpoint": "jane",
        }
        assert profile["media"]["profilePhoto"] == {"url": "", "alt": "Profile photo"}
        assert profile["media"]["documents"]["cvPdf"] == {"url": "", "filename": ""}

    def test_keeps_model_values_but_overrides_endpoint(self):
        data = {
            "metadata": {"version": "2.0.0", "tags": ["data"], "endpoint": "someone-else"},
            "media": {"profilePhoto": {"url": "/p.png", "alt": "Me"}},
        }
        profile = normalize_profile(data, "jane", "LLM Parser", now=self.NOW)

        assert profile["metadata"]["version"] == "2.0.0"
        assert profile["metadata"]["tags"] == ["data"]
        assert profile["metadata"]["endpoint"] == "jane"
        assert profile["media"]["profilePhoto"] == {"url": "/p.png", "alt": "Me"}
        assert profile["media"]["documents"]["cvPdf"] == {"url": "", "filename": ""}

    def test_non_object_metadata_is_replaced(self):
        profile = normalize_profile({"metadata": "oops"}, "jane", "LLM Parser", now=self.NOW)
        assert profile["metadata"]["endpoint"] == "jane"
        assert profile["metadata"]["version"] == "1.0.0"

    def test_input_is_not_mutated(self):
        data = {"metadata": {"endpoint": "x"}}
        normalize_profile(data, "jane", "LLM Parser", now=self.NOW)
        assert data == {"metadata": {"endpoint": "x"}}


class TestExtractText:
    @pytest.mark.asyncio
    async def test_extracts_and_normalizes(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        result = await service.extract("Jane Doe, Data Engineer", "jane")

        assert result.data["personalInfo"]["fullName"] == "Jane Doe"
        assert result.data["metadata"]["endpoint"] == "jane"
        assert result.data["metadata"]["updatedBy"] == "LLM Parser"
        assert result.model == "gpt-4o-mini"
        assert result.tokens_used == 42
        assert len(fake_llm.calls) == 1
        assert fake_llm.calls[0]["system_prompt"] == SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_missing_endpoint_defaults(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)
        result = await service.extract("Jane Doe", None)
        assert result.data["metadata"]["endpoint"] == "default"

    @pytest.mark.asyncio
    async def test_model_config_overrides_defaults(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)
        config = ModelConfig(model="gpt-4o", temperature=0.0, max_tokens=1000)

        result = await service.extract("Jane Doe", "jane", config)

        call = fake_llm.calls[0]
        assert call["model"] == "gpt-4o"
        assert call["temperature"] == 0.0
        assert call["max_tokens"] == 1000
        assert result.model == "gpt-4o"

    @pytest.mark.asyncio
    async def test_defaults_when_no_config(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm, default_model="gpt-4o-mini")
        await service.extract("Jane Doe", "jane")

        call = fake_llm.calls[0]
        assert call["model"] == "gpt-4o-mini"
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 4000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n\t"])
    async def test_empty_text_never_calls_model(self, fake_llm: FakeLLM, text: str):
        service = ProfileExtractionService(llm=fake_llm)

        with pytest.raises(ValidationAppError) as exc_info:
            await service.extract(text, "jane")

        assert exc_info.value.message == "Resume text is required"
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_empty_text_reported_before_missing_credentials(self):
        factory = MagicMock(side_effect=ConfigurationAppError(code="llm_missing_api_key", message="OpenAI API key not configured"))
        service = ProfileExtractionService(llm_factory=factory)

        with pytest.raises(ValidationAppError):
            await service.extract("", "jane")
        factory.assert_not_called()

        with pytest.raises(ConfigurationAppError) as exc_info:
            await service.extract("Jane Doe", "jane")
        assert exc_info.value.message == "OpenAI API key not configured"

    @pytest.mark.asyncio
    async def test_prose_wrapped_response(self):
        llm = FakeLLM(text='Here you go:\n{"summary": {"professionalSummary": "Hi"}}\nCheers')
        service = ProfileExtractionService(llm=llm)

        result = await service.extract("Jane Doe", "jane")

        assert result.data["summary"] == {"professionalSummary": "Hi"}
        assert result.data["metadata"]["endpoint"] == "jane"

    @pytest.mark.asyncio
    async def test_response_without_object_is_unparsable(self):
        service = ProfileExtractionService(llm=FakeLLM(text="Sorry, I cannot help with that."))

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.extract("Jane Doe", "jane")

        assert exc_info.value.code == "unparsable_model_output"
        assert exc_info.value.message == "Failed to parse LLM response as JSON"
        assert exc_info.value.client_fault is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "  "])
    async def test_empty_model_response(self, text: str):
        service = ProfileExtractionService(llm=FakeLLM(text=text))

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.extract("Jane Doe", "jane")

        assert exc_info.value.message == "No response from model"

    @pytest.mark.asyncio
    async def test_missing_schema_is_not_found(self, fake_llm: FakeLLM, tmp_path):
        service = ProfileExtractionService(llm=fake_llm, schema_path=tmp_path / "missing.json")

        with pytest.raises(NotFoundAppError) as exc_info:
            await service.extract("Jane Doe", "jane")

        assert exc_info.value.message == "Profile schema not found"
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_invalid_schema_is_configuration_error(self, fake_llm: FakeLLM, tmp_path):
        schema_path = tmp_path / "schema.json"
        schema_path.write_text("{not json", encoding="utf-8")
        service = ProfileExtractionService(llm=fake_llm, schema_path=schema_path)

        with pytest.raises(ConfigurationAppError):
            await service.extract("Jane Doe", "jane")

    @pytest.mark.asyncio
    async def test_schema_is_reloaded_for_each_request(self, fake_llm: FakeLLM, tmp_path):
        schema_path = tmp_path / "schema.json"
        schema_path.write_text(json.dumps({"title": "first"}), encoding="utf-8")
        service = ProfileExtractionService(llm=fake_llm, schema_path=schema_path)

        await service.extract("Jane Doe", "jane")
        schema_path.write_text(json.dumps({"title": "second"}), encoding="utf-8")
        await service.extract("Jane Doe", "jane")

        assert '"first"' in fake_llm.calls[0]["user_prompt"]
        assert '"second"' in fake_llm.calls[1]["user_prompt"]


class TestExtractDocuments:
    @pytest.mark.asyncio
    async def test_pdf_bytes_with_text(self, fake_llm: FakeLLM, monkeypatch):
        monkeypatch.setattr(
            "cvbot.services.extraction_service.extract_text_from_pdf_bytes",
            lambda data: ("Jane   Doe\n\n\n\nData Engineer", {"pages": 1}),
        )
        service = ProfileExtractionService(llm=fake_llm)

        result = await service.extract(b"%PDF-1.4 fake", "jane")

        assert result.data["metadata"]["updatedBy"] == "LLM PDF Parser"
        assert result.extracted_text_length == len("Jane Doe\n\nData Engineer")
        assert fake_llm.calls[0]["system_prompt"] == DOCUMENT_SYSTEM_PROMPT
        assert "Jane Doe\n\nData Engineer" in fake_llm.calls[0]["user_prompt"]

    @pytest.mark.asyncio
    async def test_pdf_without_text_is_unreadable(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.extract(_blank_pdf(), "jane")

        assert exc_info.value.code == "unreadable_document"
        assert exc_info.value.message == "No readable text found in PDF"
        assert exc_info.value.client_fault is True
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_corrupt_pdf_is_unreadable(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.extract(b"%PDF-1.4\nthis is not really a pdf", "jane")

        assert exc_info.value.message.startswith("Failed to extract text from PDF")
        assert exc_info.value.client_fault is True

    @pytest.mark.asyncio
    async def test_non_pdf_bytes_rejected_by_signature(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.extract(b"hello world", "jane")

        assert exc_info.value.code == "unreadable_document"

    @pytest.mark.asyncio
    async def test_docx_document(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        result = await service.extract_document(_docx("Jane Doe", "Data Engineer"), "docx", "jane")

        assert result.data["metadata"]["updatedBy"] == "LLM File Parser"
        assert "Jane Doe\nData Engineer" in fake_llm.calls[0]["user_prompt"]

    @pytest.mark.asyncio
    async def test_txt_document(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        result = await service.extract_document("Jérôme Doe, Engineer".encode("utf-8"), "txt", None)

        assert result.data["metadata"]["endpoint"] == "default"
        assert "Jérôme Doe, Engineer" in fake_llm.calls[0]["user_prompt"]

    @pytest.mark.asyncio
    async def test_whitespace_txt_is_unreadable(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.extract_document(b"   \n  ", "txt", "jane")

        assert exc_info.value.message == "No readable text found in text file"

    @pytest.mark.asyncio
    async def test_empty_document_is_validation_error(self, fake_llm: FakeLLM):
        service = ProfileExtractionService(llm=fake_llm)

        with pytest.raises(ValidationAppError):
            await service.extract_document(b"", "pdf", "jane")

    @pytest.mark.asyncio
    async def test_extraction_timeout_is_unreadable(self, fake_llm: FakeLLM, monkeypatch):
        async def slow(data, document_type):
            raise asyncio.TimeoutError

        monkeypatch.setattr("cvbot.services.extraction_service._extract_text_with_timeout", slow)
        service = ProfileExtractionService(llm=fake_llm)

        with pytest.raises(UpstreamAppError) as exc_info:
            await service.extract(b"%PDF-1.4", "jane")

        assert "timed out" in exc_info.value.message
