"""OpenAI chat completions backend."""

from typing import Any

from figsync.config import EnvVar, get_environment

from .base import AuthenticationError, GenerationConfig, GenerationResult, LLMBackend
from .model_spec import DEFAULT_OPENAI_MODEL, get_llm_spec


class OpenAIBackend(LLMBackend):
    """OpenAI chat completions backend.

    Also serves OpenAI-compatible endpoints through `base_url`.

    Environment:
        OPENAI_API_KEY: API key (required if not passed to constructor).

    Example:
        >>> backend = OpenAIBackend(model="gpt-4.1-nano", timeout=10.0)
        >>> backend.generate("Classify: FRAME named 'Nav/Bottom'").content
        'Navigation'
    """

    provider = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_OPENAI_MODEL.spec.name,
        base_url: str | None = None,
        timeout: float = 30.0,
    ):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY.
            model: Model name.
            base_url: Optional OpenAI-compatible endpoint.
            timeout: Request timeout in seconds.

        Raises:
            AuthenticationError: If no API key is available.
        """
        super().__init__(model, timeout)
        self._api_key = api_key or get_environment(EnvVar.OPENAI_API_KEY)
        if not self._api_key:
            raise AuthenticationError(
                "OpenAI API key required: set OPENAI_API_KEY or pass api_key"
            )
        self._base_url = base_url
        self._send_seed = get_llm_spec(f"openai:{model}").supports_seed

    def _create_client(self) -> Any:
        from openai import OpenAI

        # The classifier never retries; a failed call keeps the local result
        return OpenAI(
            api_key=self._api_key,
            base_url=self._base_url,
            timeout=self._timeout,
            max_retries=0,
        )

    def _request(
        self, prompt: str, system_prompt: str | None, config: GenerationConfig
    ) -> GenerationResult:
        options: dict[str, Any] = {}
        if config.stop_sequences:
            options["stop"] = config.stop_sequences
        if config.seed is not None and self._send_seed:
            options["seed"] = config.seed

        response = self.client.chat.completions.create(
            model=self.model_name,
            messages=self.chat_messages(prompt, system_prompt),
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            **options,
        )
        choice = response.choices[0]
        usage = response.usage
        return GenerationResult(
            content=choice.message.content or "",
            model=response.model,
            finish_reason=choice.finish_reason or "stop",
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
        )


__all__ = ["OpenAIBackend"]
