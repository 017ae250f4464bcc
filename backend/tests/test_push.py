"""
Tests for PushHub delivery: per-user targeting, multiple connections, dead sockets.
"""
import asyncio

from slotswap.services.push import PushHub


class FakeSocket:
    def __init__(self, fail=False):
        self.fail = fail
        self.messages = []

    async def send_json(self, message):
        if self.fail:
            raise ConnectionError("peer gone")
        self.messages.append(message)


async def _settle():
    # Let scheduled sends and their done callbacks run
    for _ in range(5):
        await asyncio.sleep(0.01)


def test_emit_reaches_every_connection_of_the_user_only():
    async def scenario():
        hub = PushHub()
        phone, laptop, other = FakeSocket(), FakeSocket(), FakeSocket()
        await hub.join(1, phone)
        await hub.join(1, laptop)
        await hub.join(2, other)

        sent = await asyncio.to_thread(hub.emit_to_user, 1, "swap_request_updated", {"id": 7, "status": "ACCEPTED"})
        await _settle()
        return sent, phone, laptop, other

    sent, phone, laptop, other = asyncio.run(scenario())

    expected = {"event": "swap_request_updated", "data": {"id": 7, "status": "ACCEPTED"}}
    assert sent == 2
    assert phone.messages == [expected]
    assert laptop.messages == [expected]
    assert other.messages == []


def test_emit_without_connection_is_dropped():
    hub = PushHub()
    assert hub.emit_to_user(42, "events_changed", {"updatedEventIds": [1, 2]}) == 0


def test_failed_send_drops_only_that_connection():
    async def scenario():
        hub = PushHub()
        dead, alive = FakeSocket(fail=True), FakeSocket()
        await hub.join(1, dead)
        await hub.join(1, alive)

        first = hub.emit_to_user(1, "ping", {})
        await _settle()
        second = hub.emit_to_user(1, "ping", {})
        await _settle()
        return hub, first, second, alive

    hub, first, second, alive = asyncio.run(scenario())

    assert (first, second) == (2, 1)
    assert hub.connection_count(1) == 1
    assert len(alive.messages) == 2


def test_leave_forgets_connection():
    async def scenario():
        hub = PushHub()
        ws = FakeSocket()
        await hub.join(3, ws)
        hub.leave(3, ws)
        hub.leave(3, ws)
        return hub

    hub = asyncio.run(scenario())

    assert hub.connection_count(3) == 0
    assert hub.emit_to_user(3, "ping", {}) == 0


def test_emit_after_loop_closed_drops_connection():
    async def scenario():
        hub = PushHub()
        await hub.join(5, FakeSocket())
        return hub

    hub = asyncio.run(scenario())

    assert hub.emit_to_user(5, "ping", {}) == 0
    assert hub.connection_count(5) == 0
