"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from cvbot.core.logging import JsonFormatter, RequestIdFilter, SensitiveDataFilter, clear_request_id, set_request_id


def _logger_with_stream(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_api_keys():
    """Ensure SensitiveDataFilter redacts API key fields."""
    logger, stream = _logger_with_stream("test_redaction")

    logger.info(
        "test_event",
        extra={
            "api_key": "sk-secret-123",
            "Authorization": "Bearer another-secret",
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()

    assert "sk-secret-123" not in output
    assert "another-secret" not in output
    assert "[REDACTED]" in output
    assert "visible" in output


def test_sensitive_filter_redacts_resume_content():
    """Ensure résumé text, PDF payloads and model output are redacted."""
    logger, stream = _logger_with_stream("test_resume_redaction")

    logger.info(
        "extract_event",
        extra={
            "resume_text": "Jane Doe, Data Engineer, jane@example.com",
            "pdf_buffer": "JVBERi0xLjQK",
            "completion": '{"personalInfo": {"fullName": "Jane Doe"}}',
            "char_count": 100,
        },
    )

    output = stream.getvalue()

    assert "Jane Doe" not in output
    assert "jane@example.com" not in output
    assert "JVBERi0xLjQK" not in output
    assert "[REDACTED]" in output
    assert "char_count" in output


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""
    logger, stream = _logger_with_stream("test_safe_fields")

    logger.info(
        "safe_event",
        extra={
            "route": "/api/upload/cv",
            "status": 200,
            "duration_ms": 150.5,
            "stored_filename": "cv-jane.pdf",
        },
    )

    output = stream.getvalue()

    assert "/api/upload/cv" in output
    assert "cv-jane.pdf" in output
    assert "200" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""
    logger, stream = _logger_with_stream("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "authorization": "secret-key",
                "user-agent": "pytest",
            },
            "payload": {
                "resumeText": "Jane Doe",
                "endpoint": "jane",
            },
        },
    )

    output = stream.getvalue()

    assert "secret-key" not in output
    assert "Jane Doe" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output
    assert "jane" in output


def test_json_output_includes_request_id():
    logger, stream = _logger_with_stream("test_request_id")

    set_request_id("req-abc")
    try:
        logger.info("with_request_id", extra={"endpoint": "jane"})
    finally:
        clear_request_id()

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["message"] == "with_request_id"
    assert record["request_id"] == "req-abc"
    assert record["endpoint"] == "jane"
