"""
Tests for runtime configuration and startup validation.
"""

import asyncio

import pytest

from config import GEMINI_OPENAI_BASE_URL, RuntimeConfig
from errors import ConfigurationError
from main import create_app
from validation import ValidationResult, validate_startup

from conftest import FakeLLMClient


class TestRuntimeConfigDefaults:
    """Environment-driven defaults."""

    def test_defaults(self, monkeypatch):
        """Defaults match the chat-bubble tuned model settings."""
        for key in ("LLM_CHAT_MODEL", "LLM_TEMPERATURE", "LLM_MAX_OUTPUT_TOKENS", "LLM_BASE_URL", "CHAT_HISTORY_MAX_TURNS"):
            monkeypatch.delenv(key, raising=False)
        config = RuntimeConfig()
        assert config.model_chat == "gemini-2.0-flash"
        assert config.temperature == 0.5
        assert config.max_output_tokens == 50
        assert config.llm_base_url == GEMINI_OPENAI_BASE_URL
        assert config.history_max_turns == 40

    def test_key_fallback_order(self, monkeypatch):
        """LLM_API_KEY wins over GEMINI_API_KEY, which wins over gemini_api."""
        monkeypatch.delenv("LLM_API_KEY", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "gem")
        monkeypatch.setenv("gemini_api", "legacy")
        assert RuntimeConfig().llm_api_key == "gem"

        monkeypatch.setenv("LLM_API_KEY", "primary")
        assert RuntimeConfig().llm_api_key == "primary"

    def test_env_overrides(self, monkeypatch):
        """Numeric settings parse from the environment."""
        monkeypatch.setenv("GIF_CACHE_TTL_S", "30")
        monkeypatch.setenv("CHAT_MAX_MESSAGE_LENGTH", "500")
        config = RuntimeConfig()
        assert config.gif_cache_ttl_s == 30.0
        assert config.max_message_length == 500


class TestRuntimeConfigExport:
    """Read-only views of the config."""

    def test_no_runtime_update_surface(self):
        """Values are fixed once the app is built; there is no update() to call."""
        assert not hasattr(RuntimeConfig(), "update")

    def test_to_dict_redacts_secrets(self):
        """Secrets never appear in to_dict()."""
        config = RuntimeConfig(llm_api_key="sk-secret", gif_api_key="")
        d = config.to_dict()
        assert d["llm_api_key"] == "***"
        assert d["gif_api_key"] == ""
        assert "sk-secret" not in str(d)
        assert not any(k.startswith("_") for k in d)

    def test_llm_params(self):
        """LLM params map to OpenAI argument names."""
        config = RuntimeConfig(temperature=0.5, max_output_tokens=50)
        assert config.get_llm_params() == {"temperature": 0.5, "max_tokens": 50}


class TestLimitsAppliedAtBuild:
    """create_app() hands the config's limits to the components it builds."""

    def test_history_cap_from_config(self, make_config):
        """The public context honours history_max_turns from the config given to create_app."""
        app = create_app(config=make_config(history_max_turns=2), llm_client=FakeLLMClient())
        gateway = app.state.message_router.gateway
        context = app.state.store.get_public_context()

        async def run():
            for question in ("one", "two", "three"):
                await gateway.ask(context, question)

        asyncio.run(run())
        assert [t["text"] for t in context.turns] == ["three", "answer to three"]

    def test_component_limits_match_config(self, make_config):
        config = make_config(max_display_name_length=12, outbox_max_pending=8)
        app = create_app(config=config, llm_client=FakeLLMClient())
        assert app.state.registry.max_display_name_length == 12
        assert app.state.message_router.hub.max_pending == 8


class TestStartupValidation:
    """validate_startup()."""

    def test_passes_with_keys(self, make_config):
        """A fully configured service validates cleanly."""
        result = validate_startup(make_config())
        assert result["success"] is True
        assert result["critical_count"] == 0

    def test_missing_llm_key_is_fatal(self, make_config):
        """No LLM key refuses startup."""
        with pytest.raises(ConfigurationError) as exc_info:
            validate_startup(make_config(llm_api_key=""))
        assert "LLM API key" in exc_info.value.details

    def test_missing_gif_key_is_warning(self, make_config):
        """No GIF key only warns."""
        result = validate_startup(make_config(gif_api_key=""))
        assert result["success"] is True
        assert result["warning_count"] >= 1
        assert result["checks_performed"]["gif"] is False

    def test_out_of_range_limit_warns(self, make_config):
        """Out-of-range numeric settings are warnings."""
        result = validate_startup(make_config(llm_timeout_s=0.0))
        assert result["checks_performed"]["limits"] is False
        assert any(i["category"] == "limits" for i in result["issues"])

    def test_result_helpers(self):
        """ValidationResult splits issues by severity."""
        result = ValidationResult(success=True)
        result.add_issue("a", "warning", "w")
        result.add_issue("b", "critical", "c")
        assert result.has_critical_issues()
        assert [i.message for i in result.get_warnings()] == ["w"]
        assert [i.message for i in result.get_critical()] == ["c"]
