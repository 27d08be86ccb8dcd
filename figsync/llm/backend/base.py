"""Provider-neutral interface for classifier LLM calls.

A backend turns one prompt into one short answer. The base class owns what
every provider shares: the lazily created SDK client (shared by classifier
worker threads), chat message assembly, call timing, and translation of SDK
failures into the `LLMError` family. Providers implement `_create_client`
and `_request`.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import httpx

logger = logging.getLogger(__name__)


@dataclass
class GenerationConfig:
    """Options for a single completion.

    Defaults suit classification: deterministic and a few tokens long.

    Attributes:
        temperature: Sampling temperature (0.0-2.0).
        max_tokens: Upper bound on answer tokens.
        stop_sequences: Sequences that end the answer early.
        seed: Seed for providers that support reproducible sampling.
    """

    temperature: float = 0.0
    max_tokens: int = 32
    stop_sequences: list[str] = field(default_factory=list)
    seed: int | None = None


@dataclass
class GenerationResult:
    """One completion.

    Attributes:
        content: Raw answer text.
        model: Model that produced it.
        finish_reason: Why generation stopped ('stop', 'length', ...).
        prompt_tokens: Tokens billed for the prompt.
        completion_tokens: Tokens billed for the answer.
        latency_ms: Wall time of the provider call, set by the backend.
    """

    content: str
    model: str
    finish_reason: str = "stop"
    prompt_tokens: int = 0
    completion_tokens: int = 0
    latency_ms: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @property
    def truncated(self) -> bool:
        """The answer hit the token limit and may be cut short."""
        return self.finish_reason in ("length", "max_tokens")


# =============================================================================
# Errors
# =============================================================================


class LLMError(Exception):
    """Base exception for LLM backend errors."""


class RateLimitError(LLMError):
    """The provider rejected the call for rate limiting.

    Attributes:
        retry_after: Seconds the provider asked to wait, if it said.
    """

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class ContextLengthError(LLMError):
    """The prompt does not fit the model's context window."""


class InvalidResponseError(LLMError):
    """The answer cannot be interpreted."""


class AuthenticationError(LLMError):
    """The API key is missing or was refused."""


class LLMTimeoutError(LLMError):
    """The provider did not answer within the backend timeout."""


class BackendUnavailableError(LLMError):
    """The provider endpoint could not be reached."""


def _retry_after(error: Exception) -> float | None:
    headers = getattr(getattr(error, "response", None), "headers", None) or {}
    try:
        return float(headers.get("retry-after"))
    except (TypeError, ValueError):
        return None


def translate_error(error: Exception) -> LLMError:
    """Map an SDK or transport exception onto the LLMError family.

    SDK status codes are used where the exception carries one, the
    message text otherwise.

    Example:
        >>> translate_error(RuntimeError("Rate limit reached"))
        RateLimitError('Rate limit reached')
    """
    if isinstance(error, LLMError):
        return error

    message = str(error) or type(error).__name__
    lowered = message.lower()
    status = getattr(error, "status_code", None)

    if isinstance(error, (TimeoutError, httpx.TimeoutException)) or (
        "timed out" in lowered or "timeout" in lowered
    ):
        return LLMTimeoutError(message)
    if isinstance(error, (ConnectionError, httpx.ConnectError)):
        return BackendUnavailableError(message)
    if status == 429 or "rate limit" in lowered or "rate_limit" in lowered:
        return RateLimitError(message, retry_after=_retry_after(error))
    if status in (401, 403) or "api key" in lowered or "authentication" in lowered:
        return AuthenticationError(message)
    if "context length" in lowered or "maximum context" in lowered:
        return ContextLengthError(message)
    return LLMError(message)


# =============================================================================
# Backend Interface
# =============================================================================


class LLMBackend(ABC):
    """Base class for LLM providers.

    Subclasses set `provider` and implement `_create_client` and
    `_request`; `generate` adds timing and error translation.

    Example:
        >>> backend = OpenAIBackend(model="gpt-4.1-nano")
        >>> backend.generate("Which role fits a node named 'Btn_OK'?").content
        'Button'
    """

    provider: str = "unknown"

    def __init__(self, model: str, timeout: float = 30.0):
        self._model = model
        self._timeout = timeout
        self._client: Any = None
        self._client_lock = threading.Lock()

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def name(self) -> str:
        """Backend identifier for logging, 'provider:model'."""
        return f"{self.provider}:{self.model_name}"

    @property
    def client(self) -> Any:
        """SDK client, created on first use."""
        with self._client_lock:
            if self._client is None:
                self._client = self._create_client()
        return self._client

    def close(self) -> None:
        """Close the SDK client, aborting requests still in flight.

        The next call builds a fresh client.
        """
        with self._client_lock:
            client, self._client = self._client, None
        if client is not None:
            logger.debug(f"Closing {self.name} client")
            self._close_client(client)

    def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        """Complete a prompt.

        Raises:
            LLMError: Any provider failure, as the matching subclass.
        """
        config = config or GenerationConfig()
        started = time.perf_counter()
        try:
            result = self._request(prompt, system_prompt, config)
        except Exception as e:
            raise translate_error(e) from e
        result.latency_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"{self.name} answered in {result.latency_ms:.0f} ms "
            f"({result.total_tokens} tokens)"
        )
        return result

    @staticmethod
    def chat_messages(prompt: str, system_prompt: str | None) -> list[dict[str, str]]:
        """System-then-user message list for chat-style APIs."""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    @abstractmethod
    def _create_client(self) -> Any:
        """Build the provider SDK client."""

    def _close_client(self, client: Any) -> None:
        client.close()

    @abstractmethod
    def _request(
        self, prompt: str, system_prompt: str | None, config: GenerationConfig
    ) -> GenerationResult:
        """Send one request; SDK exceptions may propagate."""


__all__ = [
    "LLMBackend",
    "GenerationConfig",
    "GenerationResult",
    "LLMError",
    "RateLimitError",
    "ContextLengthError",
    "InvalidResponseError",
    "AuthenticationError",
    "LLMTimeoutError",
    "BackendUnavailableError",
    "translate_error",
]
