"""Backend selection from a model reference."""

from figsync.config import EnvVar, get_environment

from .base import LLMBackend
from .model_spec import DEFAULT_MODEL, LLMModel, LLMProviderType, LLMSpec, get_llm_spec


def create_llm_backend(
    model: str | LLMModel | LLMSpec = DEFAULT_MODEL,
    *,
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float = 30.0,
) -> LLMBackend:
    """Create the backend serving a model.

    Args:
        model: Model name, `provider:model` string, LLMModel or LLMSpec.
        api_key: API key for remote providers. Falls back to the environment.
        base_url: Custom endpoint. Ollama falls back to OLLAMA_HOST.
        timeout: Request timeout in seconds.

    Raises:
        ValueError: If the model is unknown.
        AuthenticationError: If the provider needs an API key and has none.

    Example:
        >>> create_llm_backend("ollama:mistral").name
        'ollama:mistral'
    """
    spec = get_llm_spec(model)

    if spec.provider == LLMProviderType.OPENAI:
        from .openai import OpenAIBackend

        return OpenAIBackend(api_key, spec.name, base_url, timeout)

    if spec.provider == LLMProviderType.ANTHROPIC:
        from .anthropic import AnthropicBackend

        return AnthropicBackend(api_key, spec.name, timeout)

    from .ollama import OllamaBackend

    host = base_url or get_environment(EnvVar.OLLAMA_HOST)
    return OllamaBackend(spec.name, host, timeout)


__all__ = ["create_llm_backend"]
