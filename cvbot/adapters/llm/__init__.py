"""LLM adapter layer - abstracts over LLM providers."""

from cvbot.adapters.llm.base import AbstractLLMClient, LLMCompletion
from cvbot.adapters.llm.factory import create_llm_client
from cvbot.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "LLMCompletion",
    "OpenAIClient",
    "create_llm_client",
]
