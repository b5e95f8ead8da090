"""
Standard error response builders for World Chat.

Provides consistent payload formats for WebSocket events and HTTP responses.
"""

from typing import Any
from .codes import ErrorCode
from .exceptions import WorldChatError

# Friendly chat-bubble text per error code. Internal detail never reaches clients.
USER_MESSAGES = {
    ErrorCode.SESSION_NOT_FOUND: "Your chat session has expired. Please reconnect to keep talking to the AI.",
    ErrorCode.AI_UNAVAILABLE: "The AI is unavailable right now. Please try again in a moment.",
    ErrorCode.AI_TIMEOUT: "The AI is taking longer than expected. Please try again.",
    ErrorCode.AI_RESPONSE_INVALID: "The AI returned an empty answer. Please try rephrasing your question.",
    ErrorCode.EXTERNAL_GIF_FAILED: "Failed to fetch GIFs",
    ErrorCode.EXTERNAL_GIF_NOT_CONFIGURED: "GIF search is not configured",
}

GENERIC_MESSAGE = "Something went wrong. Please try again."


def format_error_for_user(error: WorldChatError | Exception) -> str:
    """Format an error as the friendly text shown in a chat bubble.

    Domain errors with a known code map to a canned message; validation
    errors carry their own message. Anything else becomes a generic line so
    exception text never leaks to clients.
    """
    if isinstance(error, WorldChatError):
        canned = USER_MESSAGES.get(error.code)
        if canned:
            return canned
        if error.recoverable:
            return error.message
    return GENERIC_MESSAGE


def error_event(
    error: WorldChatError | Exception,
    event_type: str = "error",
    text_key: str = "message",
    **extra: Any,
) -> dict:
    """Build an outbound WebSocket error event.

    Args:
        error: The exception to convert
        event_type: Outbound event type ("error", "ai-reply", ...)
        text_key: Field carrying the friendly text ("message" for error
            events, "error" for failed ai-reply events)
        **extra: Additional top-level fields (e.g. isPublic)

    Returns:
        Event dict with type, friendly text, code and recoverable flag

    Example:
        >>> error_event(AiUnavailableError("boom", error_type="timeout"), "ai-reply", text_key="error", isPublic=False)
        {"type": "ai-reply", "error": "The AI is taking longer...", "code": "AI_TIMEOUT",
         "recoverable": True, "isPublic": False}
    """
    if isinstance(error, WorldChatError):
        code = error.code.value
        recoverable = error.recoverable
    else:
        code = ErrorCode.INTERNAL_UNEXPECTED.value
        recoverable = False

    event = {
        "type": event_type,
        text_key: format_error_for_user(error),
        "code": code,
        "recoverable": recoverable,
    }
    event.update(extra)
    return event
