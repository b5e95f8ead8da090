"""
Tests for the World Chat error handling module.
"""

import asyncio
import logging

from errors import (
    ErrorCode,
    WorldChatError,
    InvalidIdentityError,
    DuplicateConnectionError,
    SessionNotFoundError,
    MessageRejectedError,
    AiUnavailableError,
    UpstreamProxyError,
    ConfigurationError,
    error_event,
    format_error_for_user,
    handle_event_errors,
    log_error,
)


class TestErrorCodes:
    """Test error code enum."""

    def test_error_codes_are_strings(self):
        """Error codes should be string values."""
        assert ErrorCode.SESSION_NOT_FOUND.value == "SESSION_NOT_FOUND"
        assert ErrorCode.AI_TIMEOUT == "AI_TIMEOUT"

    def test_error_codes_have_categories(self):
        """Error codes should follow category naming convention."""
        validation_codes = [c for c in ErrorCode if c.value.startswith("VALIDATION_")]
        assert len(validation_codes) >= 4

        ai_codes = [c for c in ErrorCode if c.value.startswith("AI_")]
        assert len(ai_codes) == 3


class TestWorldChatError:
    """Test base WorldChatError exception."""

    def test_basic_creation(self):
        """Create basic error with message."""
        err = WorldChatError("Test error")
        assert err.message == "Test error"
        assert err.details is None
        assert err.code == ErrorCode.INTERNAL_UNEXPECTED
        assert err.recoverable is False

    def test_with_context(self):
        """Create error with additional context."""
        err = WorldChatError("Test error", foo="bar", count=42)
        assert err.context == {"foo": "bar", "count": 42}

    def test_str_representation(self):
        """String representation includes message and details."""
        assert str(WorldChatError("Test error", details="More info")) == "Test error - More info"
        assert str(WorldChatError("Test error")) == "Test error"

    def test_to_dict(self):
        """Convert error to dictionary."""
        err = WorldChatError("Test error", details="More info", key="value")
        d = err.to_dict()
        assert d["code"] == "INTERNAL_UNEXPECTED"
        assert d["details"] == "More info"
        assert d["recoverable"] is False
        assert d["context"] == {"key": "value"}

    def test_override_class_defaults(self):
        """Code and recoverable can be overridden per instance."""
        err = WorldChatError("x", code=ErrorCode.AI_UNAVAILABLE, recoverable=True)
        assert err.code == ErrorCode.AI_UNAVAILABLE
        assert err.recoverable is True


class TestSubclasses:
    """Test domain exception subclasses."""

    def test_invalid_identity(self):
        """Identity errors are recoverable and record the field."""
        err = InvalidIdentityError("Name required", field="displayName")
        assert err.code == ErrorCode.VALIDATION_INVALID_IDENTITY
        assert err.recoverable is True
        assert err.context == {"field": "displayName"}

    def test_duplicate_connection_not_recoverable(self):
        """Duplicate registration is a server bug, not a user mistake."""
        err = DuplicateConnectionError("dup", connection_id="c1")
        assert err.recoverable is False
        assert err.context == {"connection_id": "c1"}

    def test_message_rejected_reasons(self):
        """Reason picks the specific validation code."""
        assert MessageRejectedError("x", reason="empty").code == ErrorCode.VALIDATION_EMPTY_MESSAGE
        assert MessageRejectedError("x", reason="too_long", limit=10).code == ErrorCode.VALIDATION_MESSAGE_TOO_LONG
        assert MessageRejectedError("x").code == ErrorCode.VALIDATION_INVALID_FORMAT

    def test_ai_unavailable_types(self):
        """error_type picks timeout / invalid / generic codes."""
        assert AiUnavailableError("x", error_type="timeout").code == ErrorCode.AI_TIMEOUT
        assert AiUnavailableError("x", error_type="invalid").code == ErrorCode.AI_RESPONSE_INVALID
        err = AiUnavailableError("x", model="gemini-2.0-flash")
        assert err.code == ErrorCode.AI_UNAVAILABLE
        assert err.context == {"model": "gemini-2.0-flash"}

    def test_upstream_not_configured(self):
        """Missing provider key has its own code."""
        err = UpstreamProxyError("no key", service="giphy", not_configured=True)
        assert err.code == ErrorCode.EXTERNAL_GIF_NOT_CONFIGURED
        assert UpstreamProxyError("down", status_code=502).context == {"status_code": 502}

    def test_configuration_error_fatal(self):
        """Configuration errors are not recoverable."""
        err = ConfigurationError("missing key", setting="llm")
        assert err.code == ErrorCode.INTERNAL_CONFIG_ERROR
        assert err.recoverable is False


class TestResponses:
    """Test payload builders."""

    def test_format_session_not_found_prompts_reconnect(self):
        """Expired sessions tell the user to reconnect."""
        text = format_error_for_user(SessionNotFoundError("gone"))
        assert "reconnect" in text

    def test_format_validation_uses_message(self):
        """Recoverable errors without canned text show their own message."""
        err = MessageRejectedError("Message too long (max 10 characters)", reason="too_long")
        assert format_error_for_user(err) == "Message too long (max 10 characters)"

    def test_format_hides_internal_text(self):
        """Foreign exception text never reaches the user."""
        text = format_error_for_user(RuntimeError("secret stack detail"))
        assert "secret" not in text

    def test_error_event_default_shape(self):
        """Error events carry code, message and recoverable."""
        event = error_event(MessageRejectedError("Bad frame"))
        assert event == {
            "type": "error",
            "message": "Bad frame",
            "code": "VALIDATION_INVALID_FORMAT",
            "recoverable": True,
        }

    def test_error_event_ai_reply_shape(self):
        """AI reply errors use the 'error' key and carry extras."""
        event = error_event(AiUnavailableError("t", error_type="timeout"), "ai-reply", text_key="error", isPublic=True)
        assert event["type"] == "ai-reply"
        assert event["code"] == "AI_TIMEOUT"
        assert event["isPublic"] is True
        assert "error" in event and "message" not in event


class TestHandlers:
    """Test handle_event_errors decorator and log_error."""

    def test_passes_through_result(self):
        """Successful handlers return their value unchanged."""

        @handle_event_errors("test")
        async def ok():
            return {"fine": True}

        assert asyncio.run(ok()) == {"fine": True}

    def test_domain_error_becomes_event(self):
        """Domain errors become error events."""

        @handle_event_errors("test")
        async def bad():
            raise MessageRejectedError("Nope", reason="empty")

        event = asyncio.run(bad())
        assert event["type"] == "error"
        assert event["code"] == "VALIDATION_EMPTY_MESSAGE"

    def test_unexpected_error_logged(self, caplog):
        """Unexpected errors are logged with a traceback and hidden from the client."""

        @handle_event_errors("test")
        async def boom():
            raise KeyError("internal")

        with caplog.at_level(logging.ERROR):
            event = asyncio.run(boom())
        assert event["code"] == "INTERNAL_UNEXPECTED"
        assert "internal" not in event["message"]
        assert any("Unexpected error" in r.message for r in caplog.records)

    def test_log_error_format(self, caplog):
        """log_error prefixes context and code."""
        logger = logging.getLogger("test.log_error")
        with caplog.at_level(logging.ERROR):
            log_error(logger, AiUnavailableError("slow", error_type="timeout"), context="ai-query", include_traceback=False)
        assert "[ai-query] AI_TIMEOUT: slow" in caplog.text
