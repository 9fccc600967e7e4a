"""Factory pattern for creating LLM client instances."""

from cvbot.adapters.llm.base import AbstractLLMClient
from cvbot.adapters.llm.openai_client import OpenAIClient
from cvbot.core.config import LLMSettings, settings
from cvbot.core.errors import ConfigurationAppError


def create_llm_client(llm_settings: LLMSettings | None = None) -> AbstractLLMClient:
    """Instantiate the LLM client configured for the provider.

    Args:
        llm_settings: Settings to use; defaults to the global ``settings.llm``.

    Returns:
        AbstractLLMClient: Configured LLM client instance.

    Raises:
        ConfigurationAppError: If the provider is unknown or its credentials are missing.
    """
    cfg = llm_settings or settings.llm
    provider = cfg.provider.lower()

    if provider == "openai":
        if not cfg.api_key:
            raise ConfigurationAppError(
                code="llm_missing_api_key",
                message="OpenAI API key not configured",
                details={"hint": "Set the LLM_API_KEY environment variable"},
            )
        return OpenAIClient(
            api_key=cfg.api_key,
            model=cfg.model,
            base_url=cfg.base_url,
            timeout_seconds=cfg.timeout_seconds,
        )

    raise ConfigurationAppError(
        code="llm_unknown_provider",
        message=f"Unknown LLM provider: '{provider}'. Supported providers: openai",
    )
