"""
Error handling decorators and utilities for World Chat.

Provides a decorator that keeps one failing event from escaping its handler.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from .exceptions import WorldChatError
from .response import error_event

# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., Any])


def handle_event_errors(event_name: str, logger: Optional[logging.Logger] = None):
    """Decorator that converts exceptions raised by an async event handler into an error event.

    Domain errors are logged at warning level (they are expected, e.g. a
    rejected message); anything else is logged with a stack trace. The
    wrapped coroutine returns the error event dict instead of raising.

    Args:
        event_name: Name of the event for log context
        logger: Optional logger instance (defaults to an event-specific logger)

    Example:
        >>> @handle_event_errors("chat-message")
        ... async def on_chat(connection_id, payload):
        ...     if not payload.get("text"):
        ...         raise MessageRejectedError("Empty message", reason="empty")
        ...     return None
    """

    def decorator(func: F) -> F:
        log = logger or logging.getLogger(f"worldchat.{event_name}")

        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except WorldChatError as e:
                log.warning(f"[{event_name}] {e.code.value}: {e.message}")
                return error_event(e)
            except Exception as e:
                log.error(f"[{event_name}] Unexpected error: {e}", exc_info=True)
                return error_event(e)

        return wrapper  # type: ignore

    return decorator


def log_error(
    logger: logging.Logger, error: Exception, context: Optional[str] = None, include_traceback: bool = True
) -> None:
    """Log an error with consistent formatting.

    Example:
        >>> log_error(logger, err, context="ai-query")
        # Logs: "[ai-query] AI_TIMEOUT: Model response timed out after 30s"
    """
    if isinstance(error, WorldChatError):
        message = f"{error.code.value}: {error.message}"
    else:
        message = str(error)

    if context:
        message = f"[{context}] {message}"

    logger.error(message, exc_info=include_traceback)
