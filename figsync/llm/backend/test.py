"""Tests for LLM backend implementations."""

import threading
from types import SimpleNamespace

import httpx
import pytest

from .base import (
    AuthenticationError,
    BackendUnavailableError,
    ContextLengthError,
    GenerationConfig,
    GenerationResult,
    LLMBackend,
    LLMError,
    LLMTimeoutError,
    RateLimitError,
    translate_error,
)
from .factory import create_llm_backend
from .model_spec import (
    DEFAULT_MODEL,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)


class StatusError(Exception):
    """Stand-in for an SDK error carrying an HTTP status."""

    def __init__(self, message, status_code, headers=None):
        super().__init__(message)
        self.status_code = status_code
        self.response = SimpleNamespace(headers=headers or {})


class TestModelRegistry:
    """Tests for LLMSpec resolution."""

    @pytest.mark.unit
    def test_known_names(self):
        spec = LLMModel.CLAUDE_SONNET_4_5.spec
        assert get_llm_spec("claude-sonnet-4-5") is spec
        assert get_llm_spec(LLMModel.CLAUDE_SONNET_4_5) is spec
        assert get_llm_spec(spec) is spec

    @pytest.mark.unit
    def test_provider_prefix(self):
        spec = get_llm_spec("ollama:mistral")
        assert spec == LLMSpec("mistral", LLMProviderType.OLLAMA)
        assert spec.is_local

    @pytest.mark.unit
    def test_provider_prefix_on_known_model(self):
        assert get_llm_spec("ollama:qwen3") is LLMModel.OLLAMA_QWEN3.spec

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["nonexistent-model", "acme:model"])
    def test_unknown_model_raises(self, name):
        with pytest.raises(ValueError, match="Unknown model"):
            get_llm_spec(name)

    @pytest.mark.unit
    def test_credentials(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        assert not LLMModel.CLAUDE_HAIKU_4_5.spec.has_credentials()
        assert LLMModel.OLLAMA_GEMMA3.spec.has_credentials()

        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        assert LLMModel.CLAUDE_HAIKU_4_5.spec.has_credentials()

    @pytest.mark.unit
    def test_for_provider(self):
        models = LLMModel.for_provider(LLMProviderType.OPENAI)
        assert models[0] == LLMModel.GPT_4_1_NANO
        assert all(m.spec.supports_seed for m in models)


class TestTranslateError:
    """Tests for mapping SDK failures onto LLMError."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "error,expected",
        [
            (StatusError("Too many requests", 429), RateLimitError),
            (StatusError("Forbidden", 403), AuthenticationError),
            (RuntimeError("Incorrect API key provided"), AuthenticationError),
            (RuntimeError("maximum context length is 8192"), ContextLengthError),
            (RuntimeError("Request timed out."), LLMTimeoutError),
            (httpx.ReadTimeout("read"), LLMTimeoutError),
            (ConnectionError("refused"), BackendUnavailableError),
            (RuntimeError("boom"), LLMError),
        ],
    )
    def test_mapping(self, error, expected):
        assert type(translate_error(error)) is expected

    @pytest.mark.unit
    def test_retry_after(self):
        error = StatusError("slow down", 429, headers={"retry-after": "2.5"})
        assert translate_error(error).retry_after == 2.5

    @pytest.mark.unit
    def test_llm_errors_pass_through(self):
        error = LLMError("already translated")
        assert translate_error(error) is error


class EchoBackend(LLMBackend):
    provider = "echo"

    def __init__(self, error=None):
        super().__init__("echo-1")
        self.error = error
        self.clients_created = 0

    def _create_client(self):
        self.clients_created += 1
        return object()

    def _request(self, prompt, system_prompt, config):
        if self.error:
            raise self.error
        return GenerationResult(content=prompt, model=self.model_name)


class TestLLMBackend:
    """Tests for behaviour shared by every backend."""

    @pytest.mark.unit
    def test_generate_times_call(self):
        result = EchoBackend().generate("Button")
        assert result.content == "Button"
        assert result.latency_ms >= 0
        assert result.total_tokens == 0

    @pytest.mark.unit
    def test_generate_translates_errors(self):
        backend = EchoBackend(error=StatusError("limited", 429))
        with pytest.raises(RateLimitError) as info:
            backend.generate("x")
        assert isinstance(info.value.__cause__, StatusError)

    @pytest.mark.unit
    def test_client_created_once_across_threads(self):
        backend = EchoBackend()
        threads = [threading.Thread(target=lambda: backend.client) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert backend.clients_created == 1

    @pytest.mark.unit
    def test_close_discards_client(self):
        closed = []
        backend = EchoBackend()
        backend._client = SimpleNamespace(close=lambda: closed.append(True))

        backend.close()
        backend.close()

        assert closed == [True]
        assert backend.client is not None
        assert backend.clients_created == 1

    @pytest.mark.unit
    def test_chat_messages(self):
        assert LLMBackend.chat_messages("hi", None) == [
            {"role": "user", "content": "hi"}
        ]
        assert LLMBackend.chat_messages("hi", "sys")[0]["role"] == "system"

    @pytest.mark.unit
    def test_classifier_defaults(self):
        config = GenerationConfig()
        assert config.temperature == 0.0
        assert config.max_tokens == 32

    @pytest.mark.unit
    def test_truncated(self):
        result = GenerationResult(content="Prog", model="m", finish_reason="length")
        assert result.truncated


class TestOpenAIBackend:
    """Tests for OpenAI backend."""

    @pytest.mark.unit
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        from .openai import OpenAIBackend

        with pytest.raises(AuthenticationError, match="API key required"):
            OpenAIBackend()

    @pytest.mark.unit
    def test_request(self):
        from .openai import OpenAIBackend

        calls = []

        def create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(
                choices=[
                    SimpleNamespace(
                        message=SimpleNamespace(content="Button"),
                        finish_reason="stop",
                    )
                ],
                usage=SimpleNamespace(prompt_tokens=10, completion_tokens=1),
                model="gpt-4.1-nano",
            )

        backend = OpenAIBackend(api_key="test-key")
        backend._client = SimpleNamespace(
            chat=SimpleNamespace(completions=SimpleNamespace(create=create))
        )
        result = backend.generate(
            "classify", system_prompt="roles", config=GenerationConfig(seed=7)
        )

        assert result.content == "Button"
        assert result.total_tokens == 11
        assert calls[0]["messages"][0] == {"role": "system", "content": "roles"}
        assert calls[0]["seed"] == 7
        assert backend.name == "openai:gpt-4.1-nano"


class TestAnthropicBackend:
    """Tests for Anthropic backend."""

    @pytest.mark.unit
    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        from .anthropic import AnthropicBackend

        with pytest.raises(AuthenticationError, match="API key required"):
            AnthropicBackend()

    @pytest.mark.unit
    def test_system_prompt_and_text_blocks(self):
        from .anthropic import AnthropicBackend

        calls = []

        def create(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(
                content=[
                    SimpleNamespace(type="thinking", text="hmm"),
                    SimpleNamespace(type="text", text="Toggle"),
                ],
                stop_reason="end_turn",
                usage=SimpleNamespace(input_tokens=12, output_tokens=2),
                model="claude-haiku-4-5",
            )

        backend = AnthropicBackend(api_key="test-key")
        backend._client = SimpleNamespace(messages=SimpleNamespace(create=create))
        result = backend.generate("classify", system_prompt="roles")

        assert result.content == "Toggle"
        assert result.total_tokens == 14
        assert calls[0]["system"] == "roles"
        assert calls[0]["messages"] == [{"role": "user", "content": "classify"}]


class TestOllamaBackend:
    """Tests for Ollama backend."""

    @pytest.mark.unit
    def test_request(self):
        from .ollama import OllamaBackend

        def chat(**kwargs):
            assert kwargs["options"]["num_predict"] == 32
            return {
                "message": {"content": "Card"},
                "done_reason": "stop",
                "prompt_eval_count": 20,
                "eval_count": 2,
            }

        backend = OllamaBackend()
        backend._client = SimpleNamespace(chat=chat)
        result = backend.generate("classify")

        assert result.content == "Card"
        assert result.total_tokens == 22
        assert backend.name == "ollama:llama3.2"

    @pytest.mark.unit
    def test_close_closes_transport(self):
        from .ollama import OllamaBackend

        transport = httpx.Client()
        backend = OllamaBackend()
        backend._client = SimpleNamespace(_client=transport)
        backend.close()
        assert transport.is_closed

    @pytest.mark.unit
    def test_unreachable_server(self):
        from .ollama import OllamaBackend

        def chat(**kwargs):
            raise ConnectionError("Connection refused")

        backend = OllamaBackend(base_url="http://ollama:11434")
        backend._client = SimpleNamespace(chat=chat)
        with pytest.raises(BackendUnavailableError, match="http://ollama:11434"):
            backend.generate("classify")

    @pytest.mark.unit
    def test_model_not_pulled(self):
        from .ollama import OllamaBackend

        def chat(**kwargs):
            raise StatusError("model 'gemma3' not found", 404)

        backend = OllamaBackend(model="gemma3")
        backend._client = SimpleNamespace(chat=chat)
        with pytest.raises(LLMError, match="ollama pull gemma3"):
            backend.generate("classify")


class TestCreateLLMBackend:
    """Tests for create_llm_backend factory."""

    @pytest.mark.unit
    def test_default_model(self):
        backend = create_llm_backend(api_key="test-key")
        assert backend.model_name == DEFAULT_MODEL.spec.name

    @pytest.mark.unit
    def test_creates_anthropic_backend(self):
        backend = create_llm_backend(LLMModel.CLAUDE_HAIKU_4_5, api_key="test-key")
        assert backend.provider == "anthropic"

    @pytest.mark.unit
    def test_ollama_uses_configured_host(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_HOST", "http://gpu-box:11434")
        backend = create_llm_backend("ollama:mistral", timeout=5.0)
        assert backend.name == "ollama:mistral"
        assert backend.base_url == "http://gpu-box:11434"
