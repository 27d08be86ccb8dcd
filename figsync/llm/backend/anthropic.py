"""Anthropic Messages API backend."""

from typing import Any

from figsync.config import EnvVar, get_environment

from .base import AuthenticationError, GenerationConfig, GenerationResult, LLMBackend
from .model_spec import DEFAULT_ANTHROPIC_MODEL


class AnthropicBackend(LLMBackend):
    """Claude models through the Messages API.

    The system prompt goes in the request's `system` field rather than the
    message list, and only text blocks of the reply count as the answer.

    Environment:
        ANTHROPIC_API_KEY: API key (required if not passed to constructor).
    """

    provider = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_ANTHROPIC_MODEL.spec.name,
        timeout: float = 30.0,
    ):
        super().__init__(model, timeout)
        self._api_key = api_key or get_environment(EnvVar.ANTHROPIC_API_KEY)
        if not self._api_key:
            raise AuthenticationError(
                "Anthropic API key required: set ANTHROPIC_API_KEY or pass api_key"
            )

    def _create_client(self) -> Any:
        import anthropic

        return anthropic.Anthropic(
            api_key=self._api_key, timeout=self._timeout, max_retries=0
        )

    def _request(
        self, prompt: str, system_prompt: str | None, config: GenerationConfig
    ) -> GenerationResult:
        options: dict[str, Any] = {}
        if system_prompt:
            options["system"] = system_prompt
        if config.stop_sequences:
            options["stop_sequences"] = config.stop_sequences

        response = self.client.messages.create(
            model=self.model_name,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            **options,
        )
        return GenerationResult(
            content="".join(
                block.text for block in response.content if block.type == "text"
            ),
            model=response.model,
            finish_reason=response.stop_reason or "stop",
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
        )


__all__ = ["AnthropicBackend"]
