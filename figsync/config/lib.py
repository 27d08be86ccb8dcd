"""Centralized environment configuration management for figsync.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from figsync.config import EnvVar, get_environment
    >>>
    >>> # Get values with automatic type conversion
    >>> workers = get_environment(EnvVar.CLASSIFIER_MAX_WORKERS)  # Returns int
    >>> api_key = get_environment(EnvVar.OPENAI_API_KEY)  # Returns str | None
    >>>
    >>> # Override at runtime
    >>> workers = get_environment(EnvVar.CLASSIFIER_MAX_WORKERS, override=2)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, overload

from figsync.graph import Tier

logger = logging.getLogger(__name__)

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "CLASSIFIER_MODEL").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, float, bool, Path).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by figsync.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - sync: Page-to-tier mapping and artifact naming
        - classifier: External type classifier settings
        - llm: LLM provider API keys and hosts
        - logging: Log output configuration
    """

    # -------------------------------------------------------------------------
    # Sync Settings
    # -------------------------------------------------------------------------
    FIGSYNC_ARTIFACT_ROOT = EnvConfig(
        name="FIGSYNC_ARTIFACT_ROOT",
        default="Assets/Prefabs/Figma",
        var_type=str,
        description="Root folder prepended to every artifact reference",
        category="sync",
    )
    FIGSYNC_ATOMS_PAGE = EnvConfig(
        name="FIGSYNC_ATOMS_PAGE",
        default="Atoms",
        var_type=str,
        description="Page name whose top-level nodes are built as atoms",
        category="sync",
    )
    FIGSYNC_MOLECULES_PAGE = EnvConfig(
        name="FIGSYNC_MOLECULES_PAGE",
        default="Molecules",
        var_type=str,
        description="Page name whose top-level nodes are built as molecules",
        category="sync",
    )
    FIGSYNC_ORGANISMS_PAGE = EnvConfig(
        name="FIGSYNC_ORGANISMS_PAGE",
        default="Organisms",
        var_type=str,
        description="Page name whose top-level nodes are built as organisms",
        category="sync",
    )
    FIGSYNC_ONLY_SELECTED_PAGES = EnvConfig(
        name="FIGSYNC_ONLY_SELECTED_PAGES",
        default=False,
        var_type=bool,
        description="Build only pages explicitly marked as selected",
        category="sync",
    )

    # -------------------------------------------------------------------------
    # Classifier Settings
    # -------------------------------------------------------------------------
    CLASSIFIER_ENABLED = EnvConfig(
        name="CLASSIFIER_ENABLED",
        default=False,
        var_type=bool,
        description="Consult the external LLM classifier for ambiguous nodes",
        category="classifier",
    )
    CLASSIFIER_MODEL = EnvConfig(
        name="CLASSIFIER_MODEL",
        default=None,
        var_type=str,
        description="LLM model name for the external classifier",
        category="classifier",
    )
    CLASSIFIER_TIMEOUT = EnvConfig(
        name="CLASSIFIER_TIMEOUT",
        default=30.0,
        var_type=float,
        description="Per-request timeout in seconds for classifier calls",
        category="classifier",
    )
    CLASSIFIER_MAX_WORKERS = EnvConfig(
        name="CLASSIFIER_MAX_WORKERS",
        default=4,
        var_type=int,
        description="Parallel classifier requests (1 = serial)",
        category="classifier",
    )

    # -------------------------------------------------------------------------
    # LLM API Keys and Hosts
    # -------------------------------------------------------------------------
    OPENAI_API_KEY = EnvConfig(
        name="OPENAI_API_KEY",
        default=None,
        var_type=str,
        description="OpenAI API key for GPT models",
        category="llm",
    )
    ANTHROPIC_API_KEY = EnvConfig(
        name="ANTHROPIC_API_KEY",
        default=None,
        var_type=str,
        description="Anthropic API key for Claude models",
        category="llm",
    )
    OLLAMA_HOST = EnvConfig(
        name="OLLAMA_HOST",
        default="http://localhost:11434",
        var_type=str,
        description="Ollama server URL for local LLM",
        category="llm",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    FIGSYNC_LOG_LEVEL = EnvConfig(
        name="FIGSYNC_LOG_LEVEL",
        default="INFO",
        var_type=str,
        description="Log level for the CLI (DEBUG shows layout approximations)",
        category="logging",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


def _to_bool(raw: str) -> bool:
    word = raw.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean: {raw!r}")


_CONVERTERS: dict[type, Callable[[str], Any]] = {
    bool: _to_bool,
    int: int,
    float: float,
    Path: Path,
}


def _convert(config: EnvConfig, raw: str) -> Any:
    """Convert a raw value to the variable's type.

    Values that do not parse resolve to the variable's default.
    """
    convert = _CONVERTERS.get(config.var_type, str)
    try:
        return convert(raw)
    except ValueError:
        logger.warning(
            f"Ignoring {config.name}={raw!r}: expected {config.var_type.__name__}"
        )
        return config.default


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: float) -> float: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Resolve a variable: an explicit override wins, then the environment,
    then the variable's default.

    Raw values are converted to the variable's declared type; values that do
    not convert fall back to the default with a warning.
    """
    if override is not None:
        return override

    config: EnvConfig = env_var.value
    raw = os.environ.get(config.name)
    if raw is None:
        return config.default
    return _convert(config, raw)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable."""
    return env_var.value


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """Variables in a category (sync, classifier, llm, logging), or all of them."""
    return [var for var in EnvVar if category in (None, var.value.category)]


_KEYED_PROVIDERS = {
    "openai": EnvVar.OPENAI_API_KEY,
    "anthropic": EnvVar.ANTHROPIC_API_KEY,
}


def _ollama_running(host: str | None) -> bool:
    if not host:
        return False

    import httpx

    try:
        return httpx.get(f"{host.rstrip('/')}/api/tags", timeout=2.0).is_success
    except httpx.HTTPError as e:
        logger.debug(f"Ollama not reachable at {host}: {e}")
        return False


def get_available_llm_providers() -> list[str]:
    """Names of the providers the external classifier could use right now.

    Cloud providers count when their API key is set, Ollama when its server
    answers on OLLAMA_HOST.
    """
    providers = [name for name, var in _KEYED_PROVIDERS.items() if get_environment(var)]
    if _ollama_running(get_environment(EnvVar.OLLAMA_HOST)):
        providers.append("ollama")
    return providers


# =============================================================================
# Sync Settings
# =============================================================================


@dataclass
class PageSelection:
    """Per-page build selection.

    Attributes:
        page_id: Page identifier from the source document.
        page_name: Display name (informational).
        selected: Whether the page takes part in the build.
        tier: Tier assigned to the page's top-level nodes.
    """

    page_id: str
    page_name: str = ""
    selected: bool = True
    tier: Tier = Tier.SCREEN


@dataclass
class SyncSettings:
    """Settings for a single sync run.

    Attributes:
        artifact_root: Folder prepended to artifact references.
        atoms_page: Page name mapped to the atom tier.
        molecules_page: Page name mapped to the molecule tier.
        organisms_page: Page name mapped to the organism tier.
        only_selected_pages: Skip pages not marked as selected.
        page_selections: Explicit per-page overrides keyed by page id.
        classifier_enabled: Whether the external classifier is consulted.
        classifier_model: LLM model name for the external classifier.
        classifier_timeout: Per-request classifier timeout in seconds.
        classifier_max_workers: Parallel classifier requests.
    """

    artifact_root: str = "Assets/Prefabs/Figma"
    atoms_page: str = "Atoms"
    molecules_page: str = "Molecules"
    organisms_page: str = "Organisms"
    only_selected_pages: bool = False
    page_selections: dict[str, PageSelection] = field(default_factory=dict)
    classifier_enabled: bool = False
    classifier_model: str | None = None
    classifier_timeout: float = 30.0
    classifier_max_workers: int = 4

    @classmethod
    def from_environment(cls, **overrides: Any) -> SyncSettings:
        """Build settings from environment variables.

        Keyword arguments override individual fields.
        """
        values: dict[str, Any] = {
            "artifact_root": get_environment(EnvVar.FIGSYNC_ARTIFACT_ROOT),
            "atoms_page": get_environment(EnvVar.FIGSYNC_ATOMS_PAGE),
            "molecules_page": get_environment(EnvVar.FIGSYNC_MOLECULES_PAGE),
            "organisms_page": get_environment(EnvVar.FIGSYNC_ORGANISMS_PAGE),
            "only_selected_pages": get_environment(
                EnvVar.FIGSYNC_ONLY_SELECTED_PAGES
            ),
            "classifier_enabled": get_environment(EnvVar.CLASSIFIER_ENABLED),
            "classifier_model": get_environment(EnvVar.CLASSIFIER_MODEL),
            "classifier_timeout": get_environment(EnvVar.CLASSIFIER_TIMEOUT),
            "classifier_max_workers": get_environment(EnvVar.CLASSIFIER_MAX_WORKERS),
        }
        values.update(overrides)
        return cls(**values)

    def tier_for_page(self, page_name: str, page_id: str | None = None) -> Tier:
        """Resolve the default tier of a page.

        Explicit page selections win, then the configured tier page names.
        Any other page holds screens.
        """
        if page_id is not None and page_id in self.page_selections:
            return self.page_selections[page_id].tier

        if page_name == self.atoms_page:
            return Tier.ATOM
        if page_name == self.molecules_page:
            return Tier.MOLECULE
        if page_name == self.organisms_page:
            return Tier.ORGANISM
        return Tier.SCREEN

    def is_page_selected(self, page_id: str) -> bool:
        """Check whether a page takes part in the build."""
        selection = self.page_selections.get(page_id)
        if selection is not None:
            return selection.selected
        return not self.only_selected_pages

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty if valid)."""
        problems: list[str] = []
        if not self.artifact_root.strip():
            problems.append("artifact_root must not be empty")
        names = [self.atoms_page, self.molecules_page, self.organisms_page]
        if len(set(names)) != len(names):
            problems.append("tier page names must be distinct")
        if self.classifier_max_workers < 1:
            problems.append("classifier_max_workers must be at least 1")
        if self.classifier_timeout <= 0:
            problems.append("classifier_timeout must be positive")
        if self.classifier_enabled and not self.classifier_model:
            problems.append("classifier_model is required when classifier is enabled")
        return problems


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
