"""
Shared pytest fixtures for the chat session tests.

Async code is driven with asyncio.run() inside plain test functions, so
fixtures here hand out factories rather than live objects bound to a loop.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from config import RuntimeConfig
from routers.chat_orchestration import ConnectionHub, MessageRouter
from services.ai_gateway import AiGateway
from services.conversation_store import ConversationStore
from services.participant_registry import ParticipantRegistry


def echo_reply(messages: List[Dict[str, str]]) -> str:
    """Answer with the last user turn so tests can tell replies apart."""
    return f"answer to {messages[-1]['content']}"


class FakeLLMClient:
    """Stand-in for LLMClient with controllable replies and timing.

    Args:
        reply: Reply text, or a callable taking the message list
        error: Exception to raise from every call
        gated: If True, each call blocks until its gate (an asyncio.Event) is set
    """

    def __init__(
        self,
        reply: Union[str, Callable[[List[Dict[str, str]]], str], None] = echo_reply,
        error: Optional[Exception] = None,
        gated: bool = False,
    ):
        self.reply = reply
        self.error = error
        self.gated = gated
        self.calls: List[List[Dict[str, str]]] = []
        self.gates: List[asyncio.Event] = []
        self.closed = False

    async def chat(self, model: str, messages: List[Dict], options: Optional[Dict] = None) -> Dict[str, Any]:
        self.calls.append(messages)
        if self.gated:
            gate = asyncio.Event()
            self.gates.append(gate)
            await gate.wait()
        if self.error is not None:
            raise self.error
        content = self.reply(messages) if callable(self.reply) else self.reply
        return {"message": {"role": "assistant", "content": content}}

    async def wait_for_calls(self, count: int) -> None:
        while len(self.calls) < count:
            await asyncio.sleep(0)

    async def close(self) -> None:
        self.closed = True


class Recorder:
    """Async send callable that records every outbound event."""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    async def send(self, event: Dict[str, Any]) -> None:
        self.events.append(event)

    def types(self) -> List[str]:
        return [e["type"] for e in self.events]

    def of_type(self, event_type: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]


async def settle(router: MessageRouter) -> None:
    """Let in-flight AI queries finish and every outbox flush."""
    await router.wait_idle()
    await router.hub.drain()


def identity(user_id: str, display_name: str) -> Dict[str, str]:
    return {"userId": user_id, "displayName": display_name}


@pytest.fixture
def make_config():
    """Factory for a RuntimeConfig with test keys and optional overrides."""

    def _make(**overrides) -> RuntimeConfig:
        values = {"llm_api_key": "test-llm-key", "gif_api_key": "test-gif-key"}
        values.update(overrides)
        return RuntimeConfig(**values)

    return _make


@pytest.fixture
def make_router(make_config):
    """Factory building a MessageRouter over fresh components.

    Must be called inside a running event loop (the hub starts writer tasks).
    """

    def _make(llm: Optional[FakeLLMClient] = None, config: Optional[RuntimeConfig] = None) -> MessageRouter:
        config = config or make_config()
        registry = ParticipantRegistry(max_display_name_length=config.max_display_name_length)
        store = ConversationStore(max_turns=config.history_max_turns)
        gateway = AiGateway(llm or FakeLLMClient(), store, config)
        hub = ConnectionHub(max_pending=config.outbox_max_pending)
        return MessageRouter(registry, store, gateway, hub, config)

    return _make
