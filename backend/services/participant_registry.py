"""
Participant Registry - who is connected right now.

Registry mutations are synchronous and never await, so on a single event
loop they are totally ordered as issued and count() always reflects the
last completed register/unregister.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from errors import DuplicateConnectionError, InvalidIdentityError

logger = logging.getLogger(__name__)

PresenceListener = Callable[[int], None]


@dataclass
class Participant:
    """A live chat connection and the identity it announced.

    user_id is client-supplied and unverified; it is a label, not a principal.
    """

    connection_id: str
    user_id: str
    display_name: str
    joined_at: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connectionId": self.connection_id,
            "userId": self.user_id,
            "displayName": self.display_name,
            "joinedAt": self.joined_at,
        }


class ParticipantRegistry:
    """Tracks connected participants keyed by server-side connection id."""

    def __init__(self, max_display_name_length: int = 64):
        self._participants: Dict[str, Participant] = {}
        self._listeners: List[PresenceListener] = []
        self.max_display_name_length = max_display_name_length

    def _clean_identity(self, identity: Optional[Dict[str, Any]]) -> tuple:
        if not isinstance(identity, dict):
            raise InvalidIdentityError("Identity must include userId and displayName")

        user_id = identity.get("userId")
        display_name = identity.get("displayName")

        if not isinstance(user_id, str) or not user_id.strip():
            raise InvalidIdentityError("A user id is required to join", field="userId")
        if not isinstance(display_name, str) or not display_name.strip():
            raise InvalidIdentityError("A display name is required to join", field="displayName")

        return user_id.strip(), display_name.strip()[: self.max_display_name_length]

    def register(self, connection_id: str, identity: Optional[Dict[str, Any]]) -> Participant:
        """Add a participant for a freshly connected socket.

        Raises:
            DuplicateConnectionError: connection_id is already registered
            InvalidIdentityError: userId or displayName missing or blank
        """
        if connection_id in self._participants:
            raise DuplicateConnectionError("Connection is already registered", connection_id=connection_id)

        user_id, display_name = self._clean_identity(identity)
        participant = Participant(connection_id=connection_id, user_id=user_id, display_name=display_name)
        self._participants[connection_id] = participant
        self._notify()
        return participant

    def unregister(self, connection_id: str) -> Optional[Participant]:
        """Remove a participant. Returns None when it was not registered."""
        participant = self._participants.pop(connection_id, None)
        if participant is not None:
            self._notify()
        return participant

    def lookup(self, connection_id: str) -> Optional[Participant]:
        return self._participants.get(connection_id)

    def count(self) -> int:
        return len(self._participants)

    def connection_ids(self, exclude: Optional[str] = None) -> List[str]:
        """Snapshot of live connection ids, optionally without one of them."""
        return [cid for cid in self._participants if cid != exclude]

    def participants(self) -> List[Participant]:
        return list(self._participants.values())

    def subscribe(self, listener: PresenceListener) -> None:
        """Call listener(count) after every successful register/unregister."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        count = len(self._participants)
        for listener in list(self._listeners):
            try:
                listener(count)
            except Exception as e:
                logger.error(f"Presence listener failed: {e}", exc_info=True)
