"""
World Chat Logging Configuration - Color-Coded Console Logs

Provides:
- ColorFormatter: ANSI color-coded log output
- Helper functions: log_participant, log_chat, log_ai_query, log_llm, log_presence, log_gif
- setup_logging(): Configure application logging

Usage:
    from logging_config import setup_logging, log_chat
    setup_logging()
    logger = logging.getLogger(__name__)
    log_chat(logger, "Ada", "hello everyone", recipients=3)
"""

import logging
import sys

# ANSI color codes
COLORS = {
    "RESET": "\033[0m",
    "BOLD": "\033[1m",
    "DIM": "\033[2m",
    # Event colors
    "JOIN": "\033[92m",  # Green - participant joined
    "LEAVE": "\033[33m",  # Orange - participant left
    "MSG": "\033[96m",  # Cyan - chat message
    "AI": "\033[95m",  # Magenta - AI query
    "LLM": "\033[94m",  # Blue - LLM operations
    "GIF": "\033[93m",  # Yellow - GIF proxy
    "ERROR": "\033[91m",  # Red - errors
    "WARN": "\033[33m",  # Orange/Yellow - warnings
    "DEBUG": "\033[90m",  # Gray - debug info
}

PREVIEW_LENGTH = 80


class ColorFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    LEVEL_COLORS = {
        logging.DEBUG: COLORS["DEBUG"],
        logging.INFO: COLORS["RESET"],
        logging.WARNING: COLORS["WARN"],
        logging.ERROR: COLORS["ERROR"],
        logging.CRITICAL: COLORS["ERROR"] + COLORS["BOLD"],
    }

    def format(self, record: logging.LogRecord) -> str:
        # Apply level-based color
        color = self.LEVEL_COLORS.get(record.levelno, COLORS["RESET"])

        # Format: timestamp [LEVEL] message (no module name for compactness)
        timestamp = self.formatTime(record, "%H:%M:%S")
        level = record.levelname[:4]

        formatted = (
            f"{COLORS['DIM']}{timestamp}{COLORS['RESET']} "
            f"[{color}{level}{COLORS['RESET']}] "
            f"{record.getMessage()}"
        )

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure colored logging for the application."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter())

    # Configure root logger
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def _preview(text: str) -> str:
    return text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text


# =============================================================================
# COLORED LOG HELPER FUNCTIONS
# =============================================================================


def log_participant(logger: logging.Logger, state: str, display_name: str, connection_id: str) -> None:
    """Log a participant joining or leaving.

    Args:
        logger: Logger instance
        state: 'join' or 'leave'
        display_name: Participant display name
        connection_id: Server-side connection id
    """
    if state == "join":
        logger.info(f"{COLORS['JOIN']}+++ JOIN{COLORS['RESET']} {display_name} ({connection_id})")
    else:
        logger.info(f"{COLORS['LEAVE']}--- LEAVE{COLORS['RESET']} {display_name} ({connection_id})")


def log_chat(logger: logging.Logger, sender: str, text: str, recipients: int = 0) -> None:
    """Log a relayed chat message.

    Args:
        logger: Logger instance
        sender: Display name of the sender
        text: Message text (truncated)
        recipients: Number of connections the message was fanned out to
    """
    logger.info(f"{COLORS['MSG']}>>> CHAT{COLORS['RESET']} {sender}: {_preview(text)} [recipients={recipients}]")


def log_ai_query(logger: logging.Logger, asker: str, question: str, **context) -> None:
    """Log an incoming AI query.

    Args:
        logger: Logger instance
        asker: Display name of the participant asking
        question: Question text (truncated)
        **context: Additional context (public, etc.)
    """
    ctx = " ".join(f"{k}={v}" for k, v in context.items())
    logger.info(f"{COLORS['AI']}>>> AI{COLORS['RESET']} {asker}: {_preview(question)} [{ctx}]")


def log_llm(
    logger: logging.Logger,
    state: str,
    model: str = "",
    duration: float = 0,
) -> None:
    """Log LLM call.

    Args:
        logger: Logger instance
        state: 'start' or 'end'
        model: Model name
        duration: Call duration in seconds (for end state)
    """
    if state == "start":
        logger.info(f"{COLORS['LLM']}>>> LLM{COLORS['RESET']} calling {model}")
    else:
        logger.info(f"{COLORS['LLM']}<<< LLM{COLORS['RESET']} " f"{model} completed in {duration:.1f}s")


def log_presence(logger: logging.Logger, count: int) -> None:
    """Log the presence count broadcast."""
    logger.info(f"{COLORS['DIM']}... PRESENCE{COLORS['RESET']} {count} online")


def log_gif(logger: logging.Logger, query: str, cached: bool) -> None:
    """Log a GIF proxy lookup.

    Args:
        logger: Logger instance
        query: Normalized query ('' for trending)
        cached: Whether the result came from the cache
    """
    source = "cache" if cached else "upstream"
    logger.info(f"{COLORS['GIF']}>>> GIF{COLORS['RESET']} '{query or 'trending'}' from {source}")
