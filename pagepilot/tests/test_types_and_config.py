"""Tests for conversation state serialisation and env-driven configuration."""
import pytest

from pagepilot.config import LLMSettings, PostgresConfig, StyleStoreConfig, load_dispatcher_config
from pagepilot.orchestrator.types import (
    ConversationState,
    DispatcherConfig,
    Operation,
    PendingSelection,
    Route,
)


class TestPendingSelection:
    def test_requires_two_candidates(self):
        with pytest.raises(ValueError):
            PendingSelection(collection_id="6", matched_ids=["c1"])

    def test_select_is_one_based(self):
        pending = PendingSelection(collection_id="6", matched_ids=["c1", "c2"])
        assert pending.select(1) == "c1"
        assert pending.select(2) == "c2"
        assert pending.select(0) is None
        assert pending.select(3) is None

    def test_from_dict_ignores_short_lists(self):
        assert PendingSelection.from_dict({"collection_id": "6", "matched_ids": ["c1"]}) is None
        assert PendingSelection.from_dict(None) is None


class TestConversationState:
    def test_round_trip(self):
        state = ConversationState(
            history=[{"speaker": "user", "text": "hi"}],
            pending_selection=PendingSelection(
                collection_id="6",
                matched_ids=["c1", "c2"],
                operation=Operation.ATTACH_TAG,
                tag_name="VIP",
            ),
        )
        restored = ConversationState.from_dict(state.to_dict())
        assert restored == state
        assert restored.awaiting_selection

    def test_empty_is_idle(self):
        state = ConversationState.from_dict({})
        assert state.history == []
        assert not state.awaiting_selection

    def test_unknown_operation_defaults_to_get(self):
        restored = ConversationState.from_dict(
            {"pending_selection": {"collection_id": "6", "matched_ids": ["a", "b"], "operation": "explode"}}
        )
        assert restored.pending_selection.operation is Operation.GET


class TestDispatcherConfig:
    def test_from_dict_tolerates_bad_values(self):
        config = DispatcherConfig.from_dict({"default_route": "nowhere", "llm_timeout_seconds": "soon"})
        assert config.default_route is Route.RECORD
        assert config.llm_timeout_seconds == 60.0

    def test_threshold_validated(self):
        with pytest.raises(ValueError):
            DispatcherConfig(fuzzy_threshold=1.5)

    def test_env_loading(self, monkeypatch):
        monkeypatch.setenv("AGENT_DEFAULT_ROUTE", "clarify")
        monkeypatch.setenv("AGENT_LLM_TIMEOUT_SECONDS", "none")
        monkeypatch.setenv("AGENT_SYNTHESISE_REPLIES", "false")
        monkeypatch.setenv("AGENT_FUZZY_THRESHOLD", "0.2")
        config = load_dispatcher_config(max_history_turns=4)
        assert config.default_route is Route.CLARIFY
        assert config.llm_timeout_seconds is None
        assert config.synthesise_replies is False
        assert config.fuzzy_threshold == 0.2
        assert config.max_history_turns == 4


class TestLLMSettings:
    def test_provider_picked_from_available_key(self, monkeypatch):
        monkeypatch.delenv("LLM_PROVIDER", raising=False)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("LLM_MODEL", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        settings = LLMSettings.from_env()
        assert settings.provider == "gemini"
        assert settings.api_key == "g-key"
        assert settings.to_builder_config()["model"] == "gemini-2.0-flash"

    def test_no_key_means_no_provider(self, monkeypatch):
        for var in ("LLM_PROVIDER", "OPENAI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"):
            monkeypatch.delenv(var, raising=False)
        assert LLMSettings.from_env().provider is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            LLMSettings(provider="llama")


class TestPostgresConfig:
    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://db/pagepilot")
        config = PostgresConfig.from_env(pool_size=3, ssl="require")
        assert config.url == "postgresql://db/pagepilot"
        assert config.pool_size == 3
        assert config.ssl == "require"

    def test_rejects_other_schemes(self):
        with pytest.raises(ValueError):
            PostgresConfig(url="mysql://db/x")


class TestStyleStoreConfig:
    def test_media_url(self):
        config = StyleStoreConfig(cdn_domain="cdn.example.com")
        assert config.media_url("/media/a.png") == "https://cdn.example.com/media/a.png"
        assert config.media_url(None) is None
        assert StyleStoreConfig().media_url("a.png") is None

    def test_from_env_strips_scheme(self, monkeypatch):
        monkeypatch.setenv("CDN_DOMAIN", "https://cdn.example.com/")
        assert StyleStoreConfig.from_env().cdn_domain == "cdn.example.com"
