from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class LLMCompletion:
	"""Text returned by a model call plus its token accounting."""

	text: str | None
	model: str
	total_tokens: int = 0
	prompt_tokens: int = 0
	completion_tokens: int = 0


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that turn a prompt pair into raw text."""

	default_model: str

	@abstractmethod
	async def complete(
		self,
		*,
		system_prompt: str,
		user_prompt: str,
		model: str | None = None,
		temperature: float = 0.1,
		max_tokens: int = 4000,
	) -> LLMCompletion:
		"""Run a single chat completion.

		Args:
			system_prompt: Fixed system instruction.
			user_prompt: Request-specific prompt.
			model: Model override; the client default is used when None.
			temperature: Sampling temperature.
			max_tokens: Output token budget.

		Returns:
			LLMCompletion: Raw model text (possibly empty) and token usage.

		Raises:
			UpstreamAppError: If the provider call fails.
		"""
		...
