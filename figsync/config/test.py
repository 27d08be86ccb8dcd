"""Tests for configuration management."""

import httpx
import pytest

from figsync.graph import Tier

from .lib import (
    EnvConfig,
    EnvVar,
    PageSelection,
    SyncSettings,
    get_available_llm_providers,
    get_environment,
    get_environment_info,
    list_environment_variables,
)

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("CLASSIFIER_MAX_WORKERS", raising=False)
        assert get_environment(EnvVar.CLASSIFIER_MAX_WORKERS) == 4

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("CLASSIFIER_MAX_WORKERS", "9")
        assert get_environment(EnvVar.CLASSIFIER_MAX_WORKERS, override=2) == 2

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("CLASSIFIER_MAX_WORKERS", "12")
        result = get_environment(EnvVar.CLASSIFIER_MAX_WORKERS)
        assert result == 12
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        monkeypatch.setenv("CLASSIFIER_TIMEOUT", "2.5")
        assert get_environment(EnvVar.CLASSIFIER_TIMEOUT) == 2.5

    @pytest.mark.unit
    def test_invalid_number_falls_back_to_default(self, monkeypatch):
        """Unparseable numbers resolve to the default."""
        monkeypatch.setenv("CLASSIFIER_TIMEOUT", "soon")
        assert get_environment(EnvVar.CLASSIFIER_TIMEOUT) == 30.0

    @pytest.mark.unit
    def test_bool_type_conversion_true(self, monkeypatch):
        """Boolean type conversion for true values."""
        for value in ("true", "1", "yes", "TRUE", "Yes"):
            monkeypatch.setenv("CLASSIFIER_ENABLED", value)
            assert get_environment(EnvVar.CLASSIFIER_ENABLED) is True

    @pytest.mark.unit
    def test_bool_type_conversion_false(self, monkeypatch):
        """Boolean type conversion for false values."""
        for value in ("false", "0", "no", "FALSE", "No"):
            monkeypatch.setenv("CLASSIFIER_ENABLED", value)
            assert get_environment(EnvVar.CLASSIFIER_ENABLED) is False

    @pytest.mark.unit
    def test_unrecognized_bool_uses_default(self, monkeypatch):
        monkeypatch.setenv("FIGSYNC_ONLY_SELECTED_PAGES", "maybe")
        assert get_environment(EnvVar.FIGSYNC_ONLY_SELECTED_PAGES) is False

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test-key")
        assert get_environment(EnvVar.OPENAI_API_KEY) == "sk-test-key"


class TestIntrospection:
    """Tests for environment metadata helpers."""

    @pytest.mark.unit
    def test_info_returns_config(self):
        info = get_environment_info(EnvVar.FIGSYNC_ATOMS_PAGE)
        assert isinstance(info, EnvConfig)
        assert info.name == "FIGSYNC_ATOMS_PAGE"
        assert info.default == "Atoms"

    @pytest.mark.unit
    def test_enum_names_match_config_names(self):
        """Every member's enum name equals its variable name."""
        for var in EnvVar:
            assert var.name == var.value.name

    @pytest.mark.unit
    def test_list_by_category(self):
        llm_vars = list_environment_variables("llm")
        assert EnvVar.OPENAI_API_KEY in llm_vars
        assert EnvVar.CLASSIFIER_MODEL not in llm_vars
        assert len(list_environment_variables()) == len(EnvVar)


class TestAvailableProviders:
    """Tests for provider discovery."""

    @pytest.mark.unit
    def test_keys_and_unreachable_ollama(self, monkeypatch):
        """Cloud providers are listed by key; a dead Ollama host is skipped."""
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        def refuse(*args, **kwargs):
            raise httpx.ConnectError("refused")

        monkeypatch.setattr(httpx, "get", refuse)
        assert get_available_llm_providers() == ["openai"]

    @pytest.mark.unit
    def test_running_ollama_detected(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setattr(
            httpx, "get", lambda *args, **kwargs: httpx.Response(200, json={})
        )
        assert get_available_llm_providers() == ["ollama"]


# =============================================================================
# Tests for SyncSettings
# =============================================================================


class TestSyncSettings:
    """Tests for SyncSettings."""

    @pytest.mark.unit
    def test_page_names_map_to_tiers(self):
        settings = SyncSettings()
        assert settings.tier_for_page("Atoms") == Tier.ATOM
        assert settings.tier_for_page("Molecules") == Tier.MOLECULE
        assert settings.tier_for_page("Organisms") == Tier.ORGANISM
        assert settings.tier_for_page("Checkout Flow") == Tier.SCREEN

    @pytest.mark.unit
    def test_explicit_selection_wins(self):
        """A per-page selection overrides the page-name mapping."""
        settings = SyncSettings(
            page_selections={
                "1:0": PageSelection(page_id="1:0", page_name="Atoms", tier=Tier.SKIP)
            }
        )
        assert settings.tier_for_page("Atoms", page_id="1:0") == Tier.SKIP
        assert settings.tier_for_page("Atoms", page_id="2:0") == Tier.ATOM

    @pytest.mark.unit
    def test_page_selection_flags(self):
        settings = SyncSettings(
            only_selected_pages=True,
            page_selections={"1:0": PageSelection(page_id="1:0", selected=True)},
        )
        assert settings.is_page_selected("1:0") is True
        assert settings.is_page_selected("9:0") is False
        assert SyncSettings().is_page_selected("9:0") is True

    @pytest.mark.unit
    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("FIGSYNC_ATOMS_PAGE", "Primitives")
        monkeypatch.setenv("CLASSIFIER_ENABLED", "yes")
        settings = SyncSettings.from_environment(classifier_model="llama3.2")
        assert settings.atoms_page == "Primitives"
        assert settings.classifier_enabled is True
        assert settings.classifier_model == "llama3.2"
        assert settings.tier_for_page("Primitives") == Tier.ATOM

    @pytest.mark.unit
    def test_validate_reports_problems(self):
        settings = SyncSettings(
            atoms_page="Shared",
            molecules_page="Shared",
            classifier_enabled=True,
            classifier_max_workers=0,
        )
        problems = settings.validate()
        assert len(problems) == 3
        assert SyncSettings().validate() == []
