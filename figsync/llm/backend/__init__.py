"""LLM backends for the external classifier: OpenAI, Anthropic and Ollama."""

from .base import (
    AuthenticationError,
    BackendUnavailableError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    LLMTimeoutError,
    RateLimitError,
    translate_error,
)
from .factory import create_llm_backend
from .model_spec import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_MODEL,
    DEFAULT_OLLAMA_MODEL,
    DEFAULT_OPENAI_MODEL,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)

__all__ = [
    # Interface
    "LLMBackend",
    "GenerationConfig",
    "GenerationResult",
    "create_llm_backend",
    # Errors
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
    "LLMTimeoutError",
    "BackendUnavailableError",
    "translate_error",
    # Models
    "LLMProviderType",
    "LLMSpec",
    "LLMModel",
    "get_llm_spec",
    "DEFAULT_MODEL",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_ANTHROPIC_MODEL",
    "DEFAULT_OLLAMA_MODEL",
]
