"""Models the external classifier can be pointed at.

Known models are listed in `LLMModel`. Any other model can be named as
`provider:model` (e.g. "ollama:mistral"), which is mostly useful for
locally pulled Ollama models.
"""

from dataclasses import dataclass
from enum import Enum

from figsync.config import EnvVar, get_environment


class LLMProviderType(Enum):
    """Available LLM backend providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"

    @property
    def api_key_var(self) -> EnvVar | None:
        """Environment variable holding the provider's API key, if it needs one."""
        return _API_KEY_VARS.get(self)


_API_KEY_VARS = {
    LLMProviderType.OPENAI: EnvVar.OPENAI_API_KEY,
    LLMProviderType.ANTHROPIC: EnvVar.ANTHROPIC_API_KEY,
}


@dataclass(frozen=True)
class LLMSpec:
    """A model and the provider serving it.

    Attributes:
        name: Model identifier sent to the provider.
        provider: Backend provider type.
        description: Short note shown by `python . dev models`.
        supports_seed: Provider accepts a sampling seed for this model.
    """

    name: str
    provider: LLMProviderType
    description: str = ""
    supports_seed: bool = False

    @property
    def is_local(self) -> bool:
        return self.provider == LLMProviderType.OLLAMA

    def has_credentials(self) -> bool:
        """Check whether the provider's API key (if any) is configured."""
        var = self.provider.api_key_var
        return var is None or bool(get_environment(var))


def _openai(name: str, description: str) -> LLMSpec:
    return LLMSpec(name, LLMProviderType.OPENAI, description, supports_seed=True)


def _anthropic(name: str, description: str) -> LLMSpec:
    return LLMSpec(name, LLMProviderType.ANTHROPIC, description)


def _ollama(name: str, description: str) -> LLMSpec:
    return LLMSpec(name, LLMProviderType.OLLAMA, description, supports_seed=True)


class LLMModel(Enum):
    """Registry of known classifier models, smallest first per provider."""

    GPT_4_1_NANO = _openai("gpt-4.1-nano", "lowest latency, enough for labels")
    GPT_4_1_MINI = _openai("gpt-4.1-mini", "better on ambiguous containers")
    GPT_4_1 = _openai("gpt-4.1", "slow; for hard files only")

    CLAUDE_HAIKU_4_5 = _anthropic("claude-haiku-4-5", "fast")
    CLAUDE_SONNET_4_5 = _anthropic("claude-sonnet-4-5", "slow; for hard files only")

    OLLAMA_LLAMA3_2 = _ollama("llama3.2", "local, 3B")
    OLLAMA_QWEN3 = _ollama("qwen3", "local")
    OLLAMA_GEMMA3 = _ollama("gemma3", "local")

    @property
    def spec(self) -> LLMSpec:
        return self.value

    @classmethod
    def by_name(cls, name: str) -> "LLMModel | None":
        """Look up a known model by name, or None."""
        for model in cls:
            if model.spec.name == name:
                return model
        return None

    @classmethod
    def for_provider(cls, provider: LLMProviderType) -> list["LLMModel"]:
        return [m for m in cls if m.spec.provider == provider]


DEFAULT_OPENAI_MODEL = LLMModel.GPT_4_1_NANO
DEFAULT_ANTHROPIC_MODEL = LLMModel.CLAUDE_HAIKU_4_5
DEFAULT_OLLAMA_MODEL = LLMModel.OLLAMA_LLAMA3_2

DEFAULT_MODEL = DEFAULT_OPENAI_MODEL


def get_llm_spec(model: str | LLMModel | LLMSpec) -> LLMSpec:
    """Resolve a model reference to its LLMSpec.

    Args:
        model: Known model name, `provider:model` string, LLMModel or LLMSpec.

    Raises:
        ValueError: If the name is unknown and has no known provider prefix.

    Example:
        >>> get_llm_spec("ollama:mistral").provider
        <LLMProviderType.OLLAMA: 'ollama'>
    """
    if isinstance(model, LLMSpec):
        return model
    if isinstance(model, LLMModel):
        return model.spec

    found = LLMModel.by_name(model)
    if found:
        return found.spec

    prefix, _, name = model.partition(":")
    providers = {provider.value: provider for provider in LLMProviderType}
    if name and prefix in providers:
        known = LLMModel.by_name(name)
        if known and known.spec.provider == providers[prefix]:
            return known.spec
        return LLMSpec(name, providers[prefix])
    raise ValueError(f"Unknown model: {model}")


__all__ = [
    "LLMProviderType",
    "LLMSpec",
    "LLMModel",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_ANTHROPIC_MODEL",
    "DEFAULT_OLLAMA_MODEL",
    "DEFAULT_MODEL",
    "get_llm_spec",
]
