"""
Push channel: live WebSocket connections grouped per user.

A user may hold several connections (devices, tabs); every one of them receives the
user's events and nobody else's. Nothing is queued: emitting to a user with no live
connection drops the event. emit_to_user is safe to call from worker threads (sync
routes run in FastAPI's threadpool); sends are scheduled on the event loop the
connection was accepted on and never block the caller.
"""
import asyncio
import logging
import threading
from typing import Any, Protocol

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class PushChannel(Protocol):
    def emit_to_user(self, user_id: int, event: str, payload: Any) -> int:
        ...


class PushHub:
    def __init__(self) -> None:
        self._connections: dict[int, set[WebSocket]] = {}
        self._loops: dict[WebSocket, asyncio.AbstractEventLoop] = {}
        self._lock = threading.Lock()

    async def join(self, user_id: int, websocket: WebSocket) -> None:
        """Register an accepted, authenticated connection under its user."""
        loop = asyncio.get_running_loop()
        with self._lock:
            self._connections.setdefault(user_id, set()).add(websocket)
            self._loops[websocket] = loop
        logger.info("Push connection joined for user %s (%s live)", user_id, self.connection_count(user_id))

    def leave(self, user_id: int, websocket: WebSocket) -> None:
        with self._lock:
            conns = self._connections.get(user_id)
            if conns is not None:
                conns.discard(websocket)
                if not conns:
                    del self._connections[user_id]
            self._loops.pop(websocket, None)
        logger.debug("Push connection left for user %s", user_id)

    def connection_count(self, user_id: int) -> int:
        with self._lock:
            return len(self._connections.get(user_id, ()))

    def emit_to_user(self, user_id: int, event: str, payload: Any) -> int:
        """
        Schedule {"event", "data"} on every live connection of user_id.
        Returns the number of connections the message was scheduled on (0 = dropped).
        """
        with self._lock:
            targets = [(ws, self._loops[ws]) for ws in self._connections.get(user_id, ())]
        if not targets:
            logger.debug("No live connection for user %s; dropping %s", user_id, event)
            return 0
        message = {"event": event, "data": payload}
        scheduled = 0
        for websocket, loop in targets:
            send = websocket.send_json(message)
            try:
                future = asyncio.run_coroutine_threadsafe(send, loop)
            except RuntimeError as e:
                # Loop already closed (server shutting down)
                send.close()
                logger.warning("Push %s to user %s not scheduled: %s", event, user_id, e)
                self.leave(user_id, websocket)
                continue
            future.add_done_callback(
                lambda f, ws=websocket: self._on_sent(f, user_id, ws, event)
            )
            scheduled += 1
        return scheduled

    def _on_sent(self, future, user_id: int, websocket: WebSocket, event: str) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Push %s to user %s failed, dropping connection: %s", event, user_id, exc)
            self.leave(user_id, websocket)
