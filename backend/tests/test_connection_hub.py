"""
Tests for the connection hub outboxes.
"""

import asyncio

import pytest

from routers.chat_orchestration import ConnectionHub

from conftest import Recorder


class TestOutbox:
    """Per-connection queues."""

    def test_send_preserves_order(self):
        """Events reach a socket in the order they were enqueued."""

        async def run():
            hub = ConnectionHub()
            rec = Recorder()
            hub.attach("a", rec.send)
            for i in range(20):
                hub.send("a", {"type": "n", "i": i})
            await hub.drain()
            await hub.close()
            return rec

        rec = asyncio.run(run())
        assert [e["i"] for e in rec.events] == list(range(20))

    def test_full_outbox_drops(self):
        """A full outbox drops new events instead of blocking."""

        async def run():
            hub = ConnectionHub(max_pending=1)
            rec = Recorder()
            hub.attach("a", rec.send)
            first = hub.send("a", {"type": "one"})
            second = hub.send("a", {"type": "two"})
            await hub.drain()
            await hub.close()
            return first, second, rec

        first, second, rec = asyncio.run(run())
        assert (first, second) == (True, False)
        assert rec.types() == ["one"]

    def test_slow_socket_does_not_stall_others(self):
        """One blocked writer does not delay delivery to other connections."""

        async def run():
            hub = ConnectionHub()
            gate = asyncio.Event()
            fast = Recorder()

            async def blocked_send(event):
                await gate.wait()

            hub.attach("slow", blocked_send)
            hub.attach("fast", fast.send)
            delivered = hub.broadcast({"type": "hello"}, ["slow", "fast"])
            for _ in range(5):
                await asyncio.sleep(0)
            got = fast.types()
            gate.set()
            await hub.drain()
            await hub.close()
            return delivered, got

        delivered, got = asyncio.run(run())
        assert delivered == 2
        assert got == ["hello"]

    def test_send_errors_do_not_kill_writer(self):
        """A failing send is logged and the writer keeps going."""

        async def run():
            hub = ConnectionHub()
            seen = []

            async def flaky(event):
                if event["type"] == "bad":
                    raise RuntimeError("socket closed")
                seen.append(event["type"])

            hub.attach("a", flaky)
            hub.send("a", {"type": "bad"})
            hub.send("a", {"type": "good"})
            await hub.drain()
            await hub.close()
            return seen

        assert asyncio.run(run()) == ["good"]

    def test_detach_and_unknown(self):
        """Detached or unknown connections silently drop events."""

        async def run():
            hub = ConnectionHub()
            rec = Recorder()
            hub.attach("a", rec.send)
            assert hub.detach("a") is True
            assert hub.detach("a") is False
            return hub.send("a", {"type": "x"}), hub.send("nobody", {"type": "x"})

        assert asyncio.run(run()) == (False, False)

    def test_double_attach_rejected(self):
        """A connection id has at most one outbox."""

        async def run():
            hub = ConnectionHub()
            rec = Recorder()
            hub.attach("a", rec.send)
            try:
                with pytest.raises(ValueError):
                    hub.attach("a", rec.send)
            finally:
                await hub.close()

        asyncio.run(run())
