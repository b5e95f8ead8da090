"""
World Chat Orchestration - session routing components

This module provides the orchestration layer behind the chat WebSocket
handler. It keeps transport concerns (chat.py) apart from session state.

Components:
- MessageRouter: Connection lifecycle and inbound event dispatch
- ConnectionHub: Per-connection ordered outboxes for fan-out
- events: Inbound frame models and outbound event builders

Fan-out:
    Broadcasts are synchronous enqueues into each recipient's outbox, so
    every participant observes chat messages in the order the router
    accepted them. A full outbox drops the event with a warning.
"""

from . import events
from .connection_hub import ConnectionHub
from .message_router import ConnectionState, MessageRouter

__all__ = [
    "events",
    "ConnectionHub",
    "ConnectionState",
    "MessageRouter",
]
