"""Ollama backend for locally served models.

No API key is needed; the server at OLLAMA_HOST must have the model
pulled (`ollama pull llama3.2`).
"""

from typing import Any

import httpx

from .base import (
    BackendUnavailableError,
    GenerationConfig,
    GenerationResult,
    LLMBackend,
    LLMError,
)
from .model_spec import DEFAULT_OLLAMA_MODEL

# Status the Ollama server answers with when a model is not pulled
_MODEL_NOT_FOUND = 404


class OllamaBackend(LLMBackend):
    """Local inference through an Ollama server."""

    provider = "ollama"

    def __init__(
        self,
        model: str = DEFAULT_OLLAMA_MODEL.spec.name,
        base_url: str = "http://localhost:11434",
        timeout: float = 30.0,
    ):
        super().__init__(model, timeout)
        self._base_url = base_url

    @property
    def base_url(self) -> str:
        return self._base_url

    def _create_client(self) -> Any:
        import ollama

        return ollama.Client(host=self._base_url, timeout=self._timeout)

    def _close_client(self, client: Any) -> None:
        # ollama.Client exposes no close(); its transport is an httpx.Client
        transport = getattr(client, "_client", None)
        if isinstance(transport, httpx.Client):
            transport.close()

    def _request(
        self, prompt: str, system_prompt: str | None, config: GenerationConfig
    ) -> GenerationResult:
        options: dict[str, Any] = {
            "temperature": config.temperature,
            "num_predict": config.max_tokens,
        }
        if config.seed is not None:
            options["seed"] = config.seed
        if config.stop_sequences:
            options["stop"] = config.stop_sequences

        try:
            response = self.client.chat(
                model=self.model_name,
                messages=self.chat_messages(prompt, system_prompt),
                options=options,
            )
        except (ConnectionError, httpx.ConnectError) as e:
            raise BackendUnavailableError(
                f"Cannot reach Ollama at {self._base_url}: {e}"
            ) from e
        except Exception as e:
            if getattr(e, "status_code", None) == _MODEL_NOT_FOUND:
                raise LLMError(
                    f"Model '{self.model_name}' is not pulled on {self._base_url}; "
                    f"run: ollama pull {self.model_name}"
                ) from e
            raise

        message = response.get("message") or {}
        return GenerationResult(
            content=message.get("content") or "",
            model=self.model_name,
            finish_reason=response.get("done_reason") or "stop",
            prompt_tokens=response.get("prompt_eval_count") or 0,
            completion_tokens=response.get("eval_count") or 0,
        )


__all__ = ["OllamaBackend"]
