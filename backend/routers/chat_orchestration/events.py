"""
World Chat wire events

Inbound frames are validated with pydantic models; outbound events are plain
dicts built here so every producer emits the same shape.
"""

import time
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ValidationError

from errors import MessageRejectedError

# Inbound
JOIN = "join"
CHAT_MESSAGE = "chat-message"
AI_QUERY = "ai-query"

# Outbound
JOINED = "joined"
CHAT_BROADCAST = "chat-broadcast"
CHAT_ACK = "chat-ack"
AI_REPLY = "ai-reply"
AI_PUBLIC_ANNOUNCEMENT = "ai-public-announcement"
PRESENCE_COUNT = "presence-count"
ERROR = "error"


class JoinEvent(BaseModel):
    type: Literal["join"]
    userId: Optional[str] = None
    displayName: Optional[str] = None

    def identity(self) -> Dict[str, Any]:
        return {"userId": self.userId, "displayName": self.displayName}


class ChatMessageEvent(BaseModel):
    type: Literal["chat-message"]
    text: str = ""
    messageId: Optional[Union[str, int]] = None


class AiQueryEvent(BaseModel):
    type: Literal["ai-query"]
    question: str = ""
    isPublic: bool = False


INBOUND_MODELS = {
    JOIN: JoinEvent,
    CHAT_MESSAGE: ChatMessageEvent,
    AI_QUERY: AiQueryEvent,
}


def parse_inbound(frame: Any) -> BaseModel:
    """Validate one inbound frame.

    Raises:
        MessageRejectedError: not an object, unknown type or bad field types
    """
    if not isinstance(frame, dict):
        raise MessageRejectedError("Frames must be JSON objects")

    event_type = frame.get("type")
    model = INBOUND_MODELS.get(event_type)
    if model is None:
        raise MessageRejectedError(f"Unknown event type: {event_type!r}")

    try:
        return model.model_validate(frame)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise MessageRejectedError(f"Invalid {event_type} event", details=fields) from None


def now_ms() -> int:
    return int(time.time() * 1000)


def joined(participant) -> Dict[str, Any]:
    return {
        "type": JOINED,
        "connectionId": participant.connection_id,
        "userId": participant.user_id,
        "displayName": participant.display_name,
    }


def chat_broadcast(participant, text: str, timestamp: int) -> Dict[str, Any]:
    return {
        "type": CHAT_BROADCAST,
        "sender": participant.display_name,
        "senderId": participant.user_id,
        "text": text,
        "timestamp": timestamp,
    }


def chat_ack(message_id: Optional[Union[str, int]], timestamp: int) -> Dict[str, Any]:
    return {"type": CHAT_ACK, "messageId": message_id, "timestamp": timestamp}


def ai_reply(answer: str, is_public: bool) -> Dict[str, Any]:
    return {"type": AI_REPLY, "answer": answer, "isPublic": is_public}


def ai_public_announcement(
    asker: str, question: str, answer: Optional[str] = None, error: Optional[str] = None
) -> Dict[str, Any]:
    event = {"type": AI_PUBLIC_ANNOUNCEMENT, "asker": asker, "question": question}
    if error is not None:
        event["error"] = error
    else:
        event["answer"] = answer
    return event


def presence_count(count: int) -> Dict[str, Any]:
    return {"type": PRESENCE_COUNT, "count": count}
