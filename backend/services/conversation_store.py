"""
Conversation Context Store - private and public AI conversation histories.

Holds one private context per live connection plus the single shared public
context. Creation and destruction are synchronous; appends go through the
context's own asyncio.Lock so a user/assistant pair is always written as a
unit even when several AI calls complete close together.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from errors import ContextExistsError, SessionNotFoundError

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass
class ConversationContext:
    """Ordered turn history fed to the AI backend.

    Attributes:
        kind: "public" or "private"
        owner: Owning connection id, None for the public context
        turns: List of {"role", "text"} dicts, oldest first
        max_turns: History cap in turns (0 = unbounded, 1 keeps the latest pair)
    """

    kind: str
    owner: Optional[str] = None
    turns: List[Dict[str, str]] = field(default_factory=list)
    max_turns: int = 40
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def history(self) -> List[Dict[str, str]]:
        """Snapshot of the turns, safe to hand to the backend while others append."""
        return [dict(turn) for turn in self.turns]

    def _trim(self) -> None:
        # A cap below one pair still keeps the latest exchange
        cap = max(self.max_turns, 2)
        if self.max_turns <= 0 or len(self.turns) <= cap:
            return
        # Drop whole pairs from the front so history still opens on a user turn
        excess = len(self.turns) - cap
        excess += excess % 2
        del self.turns[:excess]
        while self.turns and self.turns[0]["role"] != ROLE_USER:
            del self.turns[0]

    def __len__(self) -> int:
        return len(self.turns)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "owner": self.owner, "turns": self.history()}


class ConversationStore:
    """Owns every conversation context in the process."""

    def __init__(self, max_turns: int = 40):
        self.max_turns = max_turns
        self._private: Dict[str, ConversationContext] = {}
        self._public = ConversationContext(kind="public", max_turns=max_turns)

    def create_private_context(self, connection_id: str) -> ConversationContext:
        if connection_id in self._private:
            raise ContextExistsError("Private context already exists", connection_id=connection_id)
        context = ConversationContext(kind="private", owner=connection_id, max_turns=self.max_turns)
        self._private[connection_id] = context
        return context

    def get_private_context(self, connection_id: str) -> ConversationContext:
        """Return the caller's own private context.

        Raises:
            SessionNotFoundError: the context was destroyed or never created
        """
        context = self._private.get(connection_id)
        if context is None:
            raise SessionNotFoundError("Private context not found", connection_id=connection_id)
        return context

    def destroy_private_context(self, connection_id: str) -> bool:
        """Discard a private context. Returns False when there was nothing to discard."""
        return self._private.pop(connection_id, None) is not None

    def get_public_context(self) -> ConversationContext:
        return self._public

    def private_context_count(self) -> int:
        return len(self._private)

    async def append_turn(self, context: ConversationContext, role: str, text: str) -> None:
        if role not in (ROLE_USER, ROLE_ASSISTANT):
            raise ValueError(f"Unknown role: {role}")
        async with context.lock:
            context.turns.append({"role": role, "text": text})
            context._trim()

    async def append_exchange(self, context: ConversationContext, prompt: str, reply: str) -> None:
        """Append a user turn and its assistant reply as one atomic unit."""
        async with context.lock:
            context.turns.append({"role": ROLE_USER, "text": prompt})
            context.turns.append({"role": ROLE_ASSISTANT, "text": reply})
            context._trim()
