"""
Error codes for World Chat.

Provides a standardized taxonomy of error codes organized by category.
Use these codes consistently across WebSocket error events and HTTP responses.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for World Chat.

    Categories:
    - VALIDATION_*: Client input rejected (identity, message shape)
    - SESSION_*: Connection/context lifecycle errors
    - AI_*: Generative backend errors
    - EXTERNAL_*: Upstream proxy errors (GIF provider)
    - INTERNAL_*: Internal/unexpected errors
    """

    # Validation errors (client input)
    VALIDATION_INVALID_IDENTITY = "VALIDATION_INVALID_IDENTITY"
    VALIDATION_INVALID_FORMAT = "VALIDATION_INVALID_FORMAT"
    VALIDATION_EMPTY_MESSAGE = "VALIDATION_EMPTY_MESSAGE"
    VALIDATION_MESSAGE_TOO_LONG = "VALIDATION_MESSAGE_TOO_LONG"

    # Session lifecycle errors
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_DUPLICATE_CONNECTION = "SESSION_DUPLICATE_CONNECTION"
    SESSION_CONTEXT_EXISTS = "SESSION_CONTEXT_EXISTS"

    # AI backend errors
    AI_UNAVAILABLE = "AI_UNAVAILABLE"
    AI_TIMEOUT = "AI_TIMEOUT"
    AI_RESPONSE_INVALID = "AI_RESPONSE_INVALID"

    # External service errors
    EXTERNAL_GIF_FAILED = "EXTERNAL_GIF_FAILED"
    EXTERNAL_GIF_NOT_CONFIGURED = "EXTERNAL_GIF_NOT_CONFIGURED"

    # Internal errors
    INTERNAL_UNEXPECTED = "INTERNAL_UNEXPECTED"
    INTERNAL_CONFIG_ERROR = "INTERNAL_CONFIG_ERROR"
