"""
World Chat Router - WebSocket Handler

Transport for the group chat. This module only deals with the socket: it
performs the identity handshake, decodes frames and hands them to the
MessageRouter kept on app.state.

Architecture:
- chat.py: WebSocket endpoint and receive loop
- chat_orchestration/: Session routing components
  - message_router.py: MessageRouter (lifecycle + dispatch)
  - connection_hub.py: ConnectionHub (per-connection outboxes)
  - events.py: Wire event models and builders
"""

import asyncio
import logging
import secrets

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from errors import InvalidIdentityError, MessageRejectedError, WorldChatError, error_event

from .chat_orchestration import MessageRouter, events

logger = logging.getLogger(__name__)

router = APIRouter()

POLICY_VIOLATION = 1008


def _get_client_ip(websocket: WebSocket) -> str:
    """Extract client IP, respecting reverse proxy headers."""
    forwarded = websocket.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = websocket.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if websocket.client:
        return websocket.client.host
    return "unknown"


async def _receive_handshake(websocket: WebSocket, timeout: float) -> dict:
    """Wait for the first frame and return the announced identity.

    Raises:
        InvalidIdentityError: timeout, undecodable frame or non-join first frame
    """
    try:
        frame = await asyncio.wait_for(websocket.receive_json(), timeout=timeout)
    except asyncio.TimeoutError:
        raise InvalidIdentityError(f"No join received within {timeout:g}s") from None
    except (ValueError, KeyError):
        raise InvalidIdentityError("Join frame must be JSON") from None

    if not isinstance(frame, dict) or frame.get("type") != events.JOIN:
        raise InvalidIdentityError("First frame must be a join event")

    try:
        join = events.parse_inbound(frame)
    except MessageRejectedError as e:
        raise InvalidIdentityError("Identity must include userId and displayName", details=e.details) from None
    return join.identity()


@router.websocket("/ws/chat")
async def chat_websocket(websocket: WebSocket):
    """WebSocket endpoint for chat."""
    await websocket.accept()

    message_router: MessageRouter = websocket.app.state.message_router
    config = websocket.app.state.config
    client_ip = _get_client_ip(websocket)
    connection_id = f"ws_{secrets.token_urlsafe(16)}"

    try:
        identity = await _receive_handshake(websocket, config.handshake_timeout_s)
        message_router.connect(connection_id, identity, websocket.send_json)
    except WebSocketDisconnect:
        logger.info(f"Chat disconnected during handshake: {client_ip}")
        return
    except WorldChatError as e:
        logger.warning(f"Chat handshake rejected from {client_ip}: {e.code.value}: {e.message}")
        try:
            await websocket.send_json(error_event(e))
            await websocket.close(code=POLICY_VIOLATION, reason="Invalid identity")
        except (WebSocketDisconnect, RuntimeError) as close_error:
            # Client already gone
            logger.debug(f"Could not send handshake rejection to {client_ip}: {type(close_error).__name__}")
        return

    logger.info(f"Chat connected from {client_ip} as {connection_id}")

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except (ValueError, KeyError):
                # receive_json raises on undecodable text; the socket is still usable
                message_router.reject(connection_id, MessageRejectedError("Frames must be valid JSON"))
                continue
            await message_router.dispatch(connection_id, data)
    except WebSocketDisconnect:
        logger.info(f"Chat disconnected: {connection_id}")
    finally:
        message_router.disconnect(connection_id)
