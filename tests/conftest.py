"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports ``cvbot.core.config``
so that no local ``.env`` file or real API key leaks into the tests.
"""

import os
import tempfile

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("STORAGE_ROOT_DIR", tempfile.mkdtemp(prefix="cvbot-tests-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

import json
from typing import Any

import pytest
from fastapi.testclient import TestClient

from cvbot.adapters.llm.base import AbstractLLMClient, LLMCompletion
from cvbot.adapters.storage.in_memory import InMemoryUploadStore
from cvbot.core.app_factory import create_app
from cvbot.services.extraction_service import ProfileExtractionService


SAMPLE_PROFILE: dict[str, Any] = {
    "personalInfo": {
        "fullName": "Jane Doe",
        "title": "Data Engineer",
        "location": {"city": "Toronto", "province": "ON", "country": "Canada"},
    },
    "summary": {"professionalSummary": "Builds data pipelines."},
    "workExperience": {
        "positions": [
            {"title": "Data Engineer", "company": "Acme", "startDate": "2020-01-01", "isCurrent": True},
        ]
    },
    "technicalSkills": {"skills": [{"name": "Python", "category": "Programming Languages"}]},
}


class FakeLLM(AbstractLLMClient):
    """Records calls and replays a canned response."""

    def __init__(self, text: str | None = None, total_tokens: int = 42) -> None:
        self.default_model = "gpt-4o-mini"
        self.text = json.dumps(SAMPLE_PROFILE) if text is None else text
        self.total_tokens = total_tokens
        self.calls: list[dict[str, Any]] = []

    async def complete(self, *, system_prompt, user_prompt, model=None, temperature=0.1, max_tokens=4000):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        return LLMCompletion(
            text=self.text,
            model=model or self.default_model,
            total_tokens=self.total_tokens,
        )


@pytest.fixture
def sample_profile() -> dict[str, Any]:
    return json.loads(json.dumps(SAMPLE_PROFILE))


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def memory_store() -> InMemoryUploadStore:
    return InMemoryUploadStore()


@pytest.fixture
def extraction_service(fake_llm: FakeLLM) -> ProfileExtractionService:
    return ProfileExtractionService(llm=fake_llm)


@pytest.fixture
def client(memory_store: InMemoryUploadStore, extraction_service: ProfileExtractionService) -> TestClient:
    """Test client backed by in-memory storage and the fake model."""
    app = create_app(upload_store=memory_store, extraction_service=extraction_service)
    return TestClient(app)
