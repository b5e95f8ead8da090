"""
Configuration for World Chat.

Provides a RuntimeConfig dataclass populated from environment variables and a
process-wide singleton. Components copy the limits they need when the app is
built, so changing a value requires a restart.

Usage:
    from config import runtime_config
    limit = runtime_config.max_message_length
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Any

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
GIPHY_BASE_URL = "https://api.giphy.com/v1/gifs"

# Fields never echoed back by to_dict()
SECRET_FIELDS = {"llm_api_key", "gif_api_key"}


def _first_env(*keys: str, default: str) -> str:
    """Return the first non-empty environment value from keys, else default."""
    for key in keys:
        value = os.environ.get(key, "").strip()
        if value:
            return value
    return default


@dataclass
class RuntimeConfig:
    """
    Process configuration for the chat server.

    All values default from environment variables. Validation ranges are
    checked at startup by validation.py.
    """

    # Generative backend (OpenAI-compatible endpoint, Gemini by default)
    llm_api_key: str = field(
        default_factory=lambda: _first_env("LLM_API_KEY", "GEMINI_API_KEY", "gemini_api", default="")
    )
    llm_base_url: str = field(
        default_factory=lambda: _first_env("LLM_BASE_URL", default=GEMINI_OPENAI_BASE_URL)
    )
    model_chat: str = field(
        default_factory=lambda: _first_env("LLM_CHAT_MODEL", default="gemini-2.0-flash")
    )

    # Model parameters
    temperature: float = field(default_factory=lambda: float(os.environ.get("LLM_TEMPERATURE", "0.5")))
    max_output_tokens: int = field(
        default_factory=lambda: int(os.environ.get("LLM_MAX_OUTPUT_TOKENS", "50"))
    )  # Short, chat-bubble sized replies
    llm_timeout_s: float = field(default_factory=lambda: float(os.environ.get("LLM_TIMEOUT_S", "30")))

    # Chat session limits
    history_max_turns: int = field(
        default_factory=lambda: int(os.environ.get("CHAT_HISTORY_MAX_TURNS", "40"))
    )  # 0 = unbounded
    max_message_length: int = field(
        default_factory=lambda: int(os.environ.get("CHAT_MAX_MESSAGE_LENGTH", "4000"))
    )
    max_display_name_length: int = field(
        default_factory=lambda: int(os.environ.get("CHAT_MAX_DISPLAY_NAME_LENGTH", "64"))
    )
    handshake_timeout_s: float = field(
        default_factory=lambda: float(os.environ.get("CHAT_HANDSHAKE_TIMEOUT_S", "10"))
    )
    outbox_max_pending: int = field(
        default_factory=lambda: int(os.environ.get("CHAT_OUTBOX_MAX_PENDING", "256"))
    )

    # GIF search proxy
    gif_api_key: str = field(default_factory=lambda: _first_env("GIPHY_API_KEY", "giphy_api", default=""))
    gif_base_url: str = field(default_factory=lambda: _first_env("GIF_BASE_URL", default=GIPHY_BASE_URL))
    gif_result_limit: int = field(default_factory=lambda: int(os.environ.get("GIF_RESULT_LIMIT", "24")))
    gif_rating: str = field(default_factory=lambda: os.environ.get("GIF_RATING", "g"))
    gif_cache_ttl_s: float = field(default_factory=lambda: float(os.environ.get("GIF_CACHE_TTL_S", "600")))
    gif_cache_max_entries: int = field(
        default_factory=lambda: int(os.environ.get("GIF_CACHE_MAX_ENTRIES", "256"))
    )
    gif_timeout_s: float = field(default_factory=lambda: float(os.environ.get("GIF_TIMEOUT_S", "5")))

    # Server
    host: str = field(default_factory=lambda: os.environ.get("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "8000")))
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper())

    # Validation ranges for numeric config values
    _VALIDATION_RANGES: Dict[str, tuple] = field(default_factory=lambda: {
        "temperature": (0.0, 2.0),
        "max_output_tokens": (1, 8192),
        "llm_timeout_s": (1.0, 300.0),
        "history_max_turns": (0, 1000),
        "max_message_length": (1, 100000),
        "max_display_name_length": (1, 256),
        "handshake_timeout_s": (1.0, 120.0),
        "outbox_max_pending": (1, 10000),
        "gif_result_limit": (1, 50),
        "gif_cache_ttl_s": (0.0, 86400.0),
        "gif_cache_max_entries": (1, 100000),
        "gif_timeout_s": (0.5, 60.0),
    }, repr=False, compare=False)

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)

    @property
    def gif_configured(self) -> bool:
        return bool(self.gif_api_key)

    def get_llm_params(self) -> Dict[str, Any]:
        """Get LLM parameters for OpenAI API calls."""
        return {
            "temperature": self.temperature,
            "max_tokens": self.max_output_tokens,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Export current config as dict (excludes internal fields, redacts secrets)."""
        from dataclasses import fields as dataclass_fields

        result = {}
        for field_info in dataclass_fields(self):
            if field_info.name.startswith("_"):
                continue
            value = getattr(self, field_info.name)
            if field_info.name in SECRET_FIELDS:
                value = "***" if value else ""
            result[field_info.name] = value
        return result


# Singleton instance
runtime_config = RuntimeConfig()

