"""
World Chat Error Handling Module

Provides standardized error codes, exceptions, and payload builders
for consistent error handling across the application.

Usage:
    from errors import (
        # Error codes
        ErrorCode,

        # Exceptions
        WorldChatError,
        InvalidIdentityError,
        DuplicateConnectionError,
        ContextExistsError,
        SessionNotFoundError,
        MessageRejectedError,
        AiUnavailableError,
        UpstreamProxyError,
        ConfigurationError,

        # Payload builders
        error_event,
        format_error_for_user,

        # Decorators
        handle_event_errors,
        log_error,
    )

Example:
    from errors import handle_event_errors, MessageRejectedError

    @handle_event_errors("chat-message")
    async def on_chat(connection_id, payload):
        text = payload.get("text", "")
        if len(text) > 4000:
            raise MessageRejectedError(
                "Message too long",
                reason="too_long",
                limit=4000,
            )
"""

from .codes import ErrorCode
from .exceptions import (
    WorldChatError,
    InvalidIdentityError,
    DuplicateConnectionError,
    ContextExistsError,
    SessionNotFoundError,
    MessageRejectedError,
    AiUnavailableError,
    UpstreamProxyError,
    ConfigurationError,
)
from .response import (
    error_event,
    format_error_for_user,
)
from .handlers import (
    handle_event_errors,
    log_error,
)

__all__ = [
    # Error codes
    "ErrorCode",
    # Exceptions
    "WorldChatError",
    "InvalidIdentityError",
    "DuplicateConnectionError",
    "ContextExistsError",
    "SessionNotFoundError",
    "MessageRejectedError",
    "AiUnavailableError",
    "UpstreamProxyError",
    "ConfigurationError",
    # Payload builders
    "error_event",
    "format_error_for_user",
    # Decorators
    "handle_event_errors",
    "log_error",
]
