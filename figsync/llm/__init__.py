"""LLM access for the external type classifier.

Example:
    >>> from figsync.llm import create_llm_backend
    >>> backend = create_llm_backend("claude-haiku-4-5", timeout=10.0)
    >>> backend.generate("Name one UI role.").content
    'Button'
"""

from .backend import (
    DEFAULT_MODEL,
    AuthenticationError,
    BackendUnavailableError,
    GenerationConfig,
    GenerationResult,
    InvalidResponseError,
    LLMBackend,
    LLMError,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    LLMTimeoutError,
    RateLimitError,
    create_llm_backend,
    get_llm_spec,
)

__all__ = [
    "create_llm_backend",
    "LLMBackend",
    "GenerationConfig",
    "GenerationResult",
    "LLMModel",
    "LLMProviderType",
    "LLMSpec",
    "get_llm_spec",
    "DEFAULT_MODEL",
    # Errors
    "LLMError",
    "RateLimitError",
    "InvalidResponseError",
    "AuthenticationError",
    "LLMTimeoutError",
    "BackendUnavailableError",
]
