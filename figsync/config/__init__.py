"""Centralized configuration management for figsync.

Provides unified access to all configuration via the `get_environment()` function,
plus the `SyncSettings` bundle consumed by the pipeline.

Example:
    >>> from figsync.config import EnvVar, SyncSettings, get_environment
    >>>
    >>> model = get_environment(EnvVar.CLASSIFIER_MODEL)
    >>> settings = SyncSettings.from_environment(classifier_enabled=False)
    >>> settings.tier_for_page("Atoms")
    <Tier.ATOM: 1>

Environment Variable Categories:
    sync: Page-to-tier mapping and artifact naming
    classifier: External type classifier settings
    llm: API keys and hosts for LLM providers (OpenAI, Anthropic, Ollama)
    logging: Log output configuration
"""

from .lib import (
    # Core types
    EnvConfig,
    EnvVar,
    # Sync settings
    PageSelection,
    SyncSettings,
    # Main interface
    get_available_llm_providers,
    get_environment,
    get_environment_info,
    # Introspection
    list_environment_variables,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    "get_available_llm_providers",
    # Introspection
    "list_environment_variables",
    # Sync settings
    "PageSelection",
    "SyncSettings",
]
