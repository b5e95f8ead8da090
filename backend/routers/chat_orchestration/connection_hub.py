"""
World Chat Connection Hub - per-connection outboxes

Every live connection owns one bounded asyncio.Queue drained by a single
writer task. Enqueueing never awaits, so a broadcast reaches every recipient's
outbox in the same order the router accepted it, and a slow socket only
delays its own queue.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

SendFn = Callable[[Dict[str, Any]], Awaitable[None]]


class Outbox:
    """Ordered queue of outbound events for one connection."""

    def __init__(self, connection_id: str, send: SendFn, max_pending: int):
        self.connection_id = connection_id
        self._send = send
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self.task: Optional[asyncio.Task] = None

    def start(self) -> None:
        self.task = asyncio.get_running_loop().create_task(
            self._writer(), name=f"outbox-{self.connection_id}"
        )

    async def _writer(self) -> None:
        while True:
            event = await self.queue.get()
            try:
                await self._send(event)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                # Socket is going away; the receive loop will report the disconnect
                logger.debug(f"Send to {self.connection_id} failed: {type(e).__name__}: {e}")
            finally:
                self.queue.task_done()


class ConnectionHub:
    """Fan-out layer between the message router and the sockets."""

    def __init__(self, max_pending: int = 256):
        self.max_pending = max_pending
        self._outboxes: Dict[str, Outbox] = {}

    def attach(self, connection_id: str, send: SendFn) -> None:
        """Create and start an outbox. Must be called from the running loop."""
        if connection_id in self._outboxes:
            raise ValueError(f"Outbox already attached for {connection_id}")
        outbox = Outbox(connection_id, send, self.max_pending)
        outbox.start()
        self._outboxes[connection_id] = outbox

    def detach(self, connection_id: str) -> bool:
        """Stop the writer and discard anything still queued."""
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is None:
            return False
        if outbox.task is not None:
            outbox.task.cancel()
        return True

    def is_attached(self, connection_id: str) -> bool:
        return connection_id in self._outboxes

    def send(self, connection_id: str, event: Dict[str, Any]) -> bool:
        """Enqueue one event for one connection. Returns False if it was dropped."""
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            logger.debug(f"No outbox for {connection_id}; dropped {event.get('type')}")
            return False
        try:
            outbox.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                f"Outbox full for {connection_id} ({self.max_pending} pending); dropped {event.get('type')}"
            )
            return False
        return True

    def broadcast(self, event: Dict[str, Any], recipients: Iterable[str]) -> int:
        """Enqueue event for every recipient. Returns how many accepted it."""
        delivered = 0
        for connection_id in recipients:
            if self.send(connection_id, event):
                delivered += 1
        return delivered

    async def drain(self) -> None:
        """Wait until every outbox has flushed what is queued right now."""
        for outbox in list(self._outboxes.values()):
            await outbox.queue.join()

    async def close(self) -> None:
        tasks = []
        for connection_id in list(self._outboxes):
            outbox = self._outboxes[connection_id]
            self.detach(connection_id)
            if outbox.task is not None:
                tasks.append(outbox.task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
