"""
World Chat Message Router - connection lifecycle and event dispatch

Per-connection states: CONNECTING -> ACTIVE -> DISCONNECTED (terminal).

The router owns the pairing between a participant and its private context:
both are created in connect() and both are torn down in disconnect(). Chat
messages fan out synchronously through the ConnectionHub; AI queries run as
tracked background tasks so a slow model never blocks the connection's chat
traffic.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Optional, Set

from config import RuntimeConfig, runtime_config
from errors import (
    DuplicateConnectionError,
    MessageRejectedError,
    SessionNotFoundError,
    WorldChatError,
    error_event,
    format_error_for_user,
    handle_event_errors,
    log_error,
)
from logging_config import log_ai_query, log_chat, log_participant, log_presence
from services.ai_gateway import AiGateway
from services.conversation_store import ConversationStore
from services.participant_registry import Participant, ParticipantRegistry

from . import events
from .connection_hub import ConnectionHub, SendFn

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


class MessageRouter:
    """Turns inbound connection events into outbound events."""

    def __init__(
        self,
        registry: ParticipantRegistry,
        store: ConversationStore,
        gateway: AiGateway,
        hub: ConnectionHub,
        config: RuntimeConfig = runtime_config,
    ):
        self.registry = registry
        self.store = store
        self.gateway = gateway
        self.hub = hub
        self.config = config

        # Only CONNECTING/ACTIVE ids are kept; anything else reads as DISCONNECTED
        self._states: Dict[str, ConnectionState] = {}
        self._query_locks: Dict[str, asyncio.Lock] = {}
        self._tasks: Set[asyncio.Task] = set()

        registry.subscribe(self._on_presence_change)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def state(self, connection_id: str) -> ConnectionState:
        return self._states.get(connection_id, ConnectionState.DISCONNECTED)

    def is_active(self, connection_id: str) -> bool:
        return self._states.get(connection_id) == ConnectionState.ACTIVE

    def connect(self, connection_id: str, identity: Optional[Dict[str, Any]], send: SendFn) -> Participant:
        """Admit a connection after its identity handshake.

        The outbox is attached first so the newcomer is counted in the
        presence broadcast triggered by registration. On any failure the
        context, outbox and state are rolled back and no presence event
        is emitted.

        Raises:
            InvalidIdentityError: identity missing or blank
            DuplicateConnectionError: connection_id already live
            ContextExistsError: a private context was already live for this id
        """
        if connection_id in self._states:
            raise DuplicateConnectionError("Connection is already registered", connection_id=connection_id)

        self._states[connection_id] = ConnectionState.CONNECTING
        self.hub.attach(connection_id, send)
        try:
            self.store.create_private_context(connection_id)
            try:
                participant = self.registry.register(connection_id, identity)
            except Exception:
                self.store.destroy_private_context(connection_id)
                raise
        except Exception:
            self.hub.detach(connection_id)
            self._states.pop(connection_id, None)
            raise

        self._query_locks[connection_id] = asyncio.Lock()
        self._states[connection_id] = ConnectionState.ACTIVE
        self.hub.send(connection_id, events.joined(participant))
        log_participant(logger, "join", participant.display_name, connection_id)
        return participant

    def disconnect(self, connection_id: str) -> bool:
        """Tear down a connection. Safe to call any number of times."""
        if self._states.pop(connection_id, None) is None:
            return False

        self._query_locks.pop(connection_id, None)
        self.hub.detach(connection_id)
        participant = self.registry.unregister(connection_id)
        self.store.destroy_private_context(connection_id)

        name = participant.display_name if participant else "?"
        log_participant(logger, "leave", name, connection_id)
        return True

    def _on_presence_change(self, count: int) -> None:
        self.hub.broadcast(events.presence_count(count), self.registry.connection_ids())
        log_presence(logger, count)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, connection_id: str, frame: Any) -> None:
        """Handle one inbound frame. Never raises; failures become an error event for the sender."""
        if not self.is_active(connection_id):
            logger.debug(f"Dropped frame for inactive connection {connection_id}")
            return

        error = await self._handle_frame(connection_id, frame)
        if error:
            self.hub.send(connection_id, error)

    def reject(self, connection_id: str, error: Exception) -> None:
        """Send an error event to a live connection (e.g. for an undecodable frame)."""
        if self.is_active(connection_id):
            self.hub.send(connection_id, error_event(error))

    @handle_event_errors("dispatch", logger=logger)
    async def _handle_frame(self, connection_id: str, frame: Any) -> None:
        event = events.parse_inbound(frame)

        if isinstance(event, events.ChatMessageEvent):
            self._handle_chat(connection_id, event)
        elif isinstance(event, events.AiQueryEvent):
            self._handle_ai_query(connection_id, event)
        else:
            raise MessageRejectedError("Already joined")
        return None

    def _participant(self, connection_id: str) -> Participant:
        participant = self.registry.lookup(connection_id)
        if participant is None:
            raise SessionNotFoundError("Participant not registered", connection_id=connection_id)
        return participant

    def _handle_chat(self, connection_id: str, event: events.ChatMessageEvent) -> None:
        text = event.text
        if not text.strip():
            logger.debug(f"Ignored blank chat message from {connection_id}")
            return

        limit = self.config.max_message_length
        if len(text) > limit:
            raise MessageRejectedError(f"Message too long (max {limit:,} characters)", reason="too_long", limit=limit)

        participant = self._participant(connection_id)
        timestamp = events.now_ms()
        recipients = self.registry.connection_ids(exclude=connection_id)

        delivered = self.hub.broadcast(events.chat_broadcast(participant, text, timestamp), recipients)
        self.hub.send(connection_id, events.chat_ack(event.messageId, timestamp))
        log_chat(logger, participant.display_name, text, recipients=delivered)

    def _handle_ai_query(self, connection_id: str, event: events.AiQueryEvent) -> None:
        question = event.question.strip()
        is_public = event.isPublic

        if not question:
            rejected = MessageRejectedError("Please type a question for the AI", reason="empty")
            self.hub.send(connection_id, self._ai_error(rejected, is_public))
            return

        limit = self.config.max_message_length
        if len(question) > limit:
            rejected = MessageRejectedError(f"Question too long (max {limit:,} characters)", reason="too_long", limit=limit)
            self.hub.send(connection_id, self._ai_error(rejected, is_public))
            return

        participant = self._participant(connection_id)
        log_ai_query(logger, participant.display_name, question, public=is_public)

        if is_public:
            coro = self._run_public_query(connection_id, participant, question)
        else:
            coro = self._run_private_query(connection_id, question)
        self._track(asyncio.get_running_loop().create_task(coro))

    # ------------------------------------------------------------------
    # AI query tasks
    # ------------------------------------------------------------------

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    def _ai_error(error: Exception, is_public: bool) -> Dict[str, Any]:
        return error_event(error, events.AI_REPLY, text_key="error", isPublic=is_public)

    async def _run_public_query(self, connection_id: str, participant: Participant, question: str) -> None:
        context = self.store.get_public_context()
        try:
            answer = await self.gateway.ask(context, question)
        except Exception as e:
            if not isinstance(e, WorldChatError):
                log_error(logger, e, context="ai-query public")
            if self.is_active(connection_id):
                self.hub.send(connection_id, self._ai_error(e, is_public=True))
            announcement = events.ai_public_announcement(
                participant.display_name, question, error=format_error_for_user(e)
            )
            self.hub.broadcast(announcement, self.registry.connection_ids(exclude=connection_id))
            return

        if self.is_active(connection_id):
            self.hub.send(connection_id, events.ai_reply(answer, is_public=True))
        else:
            logger.debug(f"Asker {connection_id} left; public reply kept in history only")

        announcement = events.ai_public_announcement(participant.display_name, question, answer=answer)
        self.hub.broadcast(announcement, self.registry.connection_ids(exclude=connection_id))

    async def _run_private_query(self, connection_id: str, question: str) -> None:
        lock = self._query_locks.get(connection_id)
        if lock is None:
            return

        # Held across the whole ask so one connection's history keeps issue order
        async with lock:
            if not self.is_active(connection_id):
                return
            try:
                context = self.store.get_private_context(connection_id)
                answer = await self.gateway.ask(context, question)
            except Exception as e:
                if not isinstance(e, WorldChatError):
                    log_error(logger, e, context="ai-query private")
                if self.is_active(connection_id):
                    self.hub.send(connection_id, self._ai_error(e, is_public=False))
                return

            if self.is_active(connection_id):
                self.hub.send(connection_id, events.ai_reply(answer, is_public=False))
            else:
                logger.debug(f"Asker {connection_id} left; private reply discarded")

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    @property
    def pending_queries(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait for every in-flight AI query to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.wait_idle()
        for connection_id in list(self._states):
            self.disconnect(connection_id)
        await self.hub.close()
