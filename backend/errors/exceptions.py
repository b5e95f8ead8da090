"""
Custom exception hierarchy for World Chat.

All exceptions inherit from WorldChatError and include:
- code: ErrorCode for categorization
- message: Human-readable error message
- details: Optional additional context
- recoverable: Whether the user can retry/fix the issue
- context: Additional key-value pairs for debugging
"""

from typing import Any, Optional
from .codes import ErrorCode


class WorldChatError(Exception):
    """Base exception for all World Chat errors.

    Attributes:
        code: The ErrorCode categorizing this error
        message: Human-readable error message
        details: Optional additional context for the user
        recoverable: Whether the error can be resolved by user action
        context: Additional debugging information
    """

    code: ErrorCode = ErrorCode.INTERNAL_UNEXPECTED
    recoverable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        code: Optional[ErrorCode] = None,
        recoverable: Optional[bool] = None,
        **context: Any,
    ):
        self.message = message
        self.details = details
        self.context = context if context else None

        # Allow overriding class defaults
        if code is not None:
            self.code = code
        if recoverable is not None:
            self.recoverable = recoverable

        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message

    def to_dict(self) -> dict:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "context": self.context,
        }


class InvalidIdentityError(WorldChatError):
    """Handshake identity rejected; the connection never becomes active."""

    code = ErrorCode.VALIDATION_INVALID_IDENTITY
    recoverable = True

    def __init__(self, message: str, details: Optional[str] = None, field: Optional[str] = None, **context: Any):
        ctx = {**context}
        if field:
            ctx["field"] = field
        super().__init__(message, details, **ctx)


class DuplicateConnectionError(WorldChatError):
    """A connection id was registered twice."""

    code = ErrorCode.SESSION_DUPLICATE_CONNECTION
    recoverable = False

    def __init__(self, message: str, details: Optional[str] = None, connection_id: Optional[str] = None, **context: Any):
        ctx = {**context}
        if connection_id:
            ctx["connection_id"] = connection_id
        super().__init__(message, details, **ctx)


class ContextExistsError(WorldChatError):
    """A private context was created twice for one live connection."""

    code = ErrorCode.SESSION_CONTEXT_EXISTS
    recoverable = False

    def __init__(self, message: str, details: Optional[str] = None, connection_id: Optional[str] = None, **context: Any):
        ctx = {**context}
        if connection_id:
            ctx["connection_id"] = connection_id
        super().__init__(message, details, **ctx)


class SessionNotFoundError(WorldChatError):
    """An operation referenced a connection or context that no longer exists."""

    code = ErrorCode.SESSION_NOT_FOUND
    recoverable = True

    def __init__(self, message: str, details: Optional[str] = None, connection_id: Optional[str] = None, **context: Any):
        ctx = {**context}
        if connection_id:
            ctx["connection_id"] = connection_id
        super().__init__(message, details, **ctx)


class MessageRejectedError(WorldChatError):
    """An inbound event failed validation (empty, too long, malformed)."""

    code = ErrorCode.VALIDATION_INVALID_FORMAT
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        reason: Optional[str] = None,
        limit: Optional[int] = None,
        **context: Any,
    ):
        if reason == "empty":
            code = ErrorCode.VALIDATION_EMPTY_MESSAGE
        elif reason == "too_long":
            code = ErrorCode.VALIDATION_MESSAGE_TOO_LONG
        else:
            code = ErrorCode.VALIDATION_INVALID_FORMAT

        ctx = {**context}
        if limit:
            ctx["limit"] = limit
        super().__init__(message, details, code=code, **ctx)


class AiUnavailableError(WorldChatError):
    """The generative backend failed, timed out or returned unusable content."""

    code = ErrorCode.AI_UNAVAILABLE
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        model: Optional[str] = None,
        error_type: Optional[str] = None,
        **context: Any,
    ):
        # Set appropriate code based on error type
        if error_type == "timeout":
            code = ErrorCode.AI_TIMEOUT
        elif error_type == "invalid":
            code = ErrorCode.AI_RESPONSE_INVALID
        else:
            code = ErrorCode.AI_UNAVAILABLE

        ctx = {**context}
        if model:
            ctx["model"] = model
        super().__init__(message, details, code=code, **ctx)


class UpstreamProxyError(WorldChatError):
    """Error with the GIF provider (unconfigured or failed upstream call)."""

    code = ErrorCode.EXTERNAL_GIF_FAILED
    recoverable = True

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        not_configured: bool = False,
        **context: Any,
    ):
        code = ErrorCode.EXTERNAL_GIF_NOT_CONFIGURED if not_configured else ErrorCode.EXTERNAL_GIF_FAILED

        ctx = {**context}
        if service:
            ctx["service"] = service
        if status_code:
            ctx["status_code"] = status_code
        super().__init__(message, details, code=code, **ctx)


class ConfigurationError(WorldChatError):
    """Required configuration missing at startup. Fatal."""

    code = ErrorCode.INTERNAL_CONFIG_ERROR
    recoverable = False

    def __init__(self, message: str, details: Optional[str] = None, setting: Optional[str] = None, **context: Any):
        ctx = {**context}
        if setting:
            ctx["setting"] = setting
        super().__init__(message, details, **ctx)
