"""OpenAI LLM client adapter."""

import logging
from typing import Any

from openai import AsyncOpenAI, BadRequestError, NotFoundError, OpenAIError

from cvbot.adapters.llm.base import AbstractLLMClient, LLMCompletion
from cvbot.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)


def _token_count(usage: Any, field: str) -> int:
    value = getattr(usage, field, None)
    return value if isinstance(value, int) else 0


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI chat completions.

    Uses the official OpenAI Python SDK with async support. The raw message
    text is returned untouched; turning it into JSON is the caller's job.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize OpenAI async client.

        Args:
            api_key: OpenAI API key for authentication.
            model: Default model name (e.g., "gpt-4o-mini").
            base_url: Optional custom base URL for OpenAI-compatible APIs.
            timeout_seconds: Request timeout; None keeps the SDK default.
        """
        client_kwargs: dict[str, Any] = {"api_key": api_key, "base_url": base_url}
        if timeout_seconds is not None:
            client_kwargs["timeout"] = timeout_seconds
        self.client = AsyncOpenAI(**client_kwargs)
        self.default_model = model

    async def complete(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        model: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4000,
    ) -> LLMCompletion:
        """Run one chat completion and return its text and usage.

        Raises:
            UpstreamAppError: If the API call fails. Requests rejected as
                invalid (bad model name, oversized budget) are flagged as
                caller faults.
        """
        model_name = model or self.default_model
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

        try:
            response = await self.client.chat.completions.create(
                model=model_name,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except (BadRequestError, NotFoundError) as exc:
            logger.warning(
                "llm.request_rejected",
                extra={"model": model_name, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code="llm_request_rejected",
                message=f"Model request rejected: {exc}",
                details={"model": model_name},
                client_fault=True,
            ) from exc
        except OpenAIError as exc:
            logger.error(
                "llm.request_failed",
                extra={"model": model_name, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code="llm_request_failed",
                message=f"OpenAI API error: {exc}",
                details={"model": model_name},
            ) from exc

        text = response.choices[0].message.content if response.choices else None
        usage = response.usage

        return LLMCompletion(
            text=text,
            model=model_name,
            total_tokens=_token_count(usage, "total_tokens"),
            prompt_tokens=_token_count(usage, "prompt_tokens"),
            completion_tokens=_token_count(usage, "completion_tokens"),
        )
