"""
Push channel: WebSocket endpoint clients keep open to receive swap events.

Connect with ws://host/ws?token=<jwt>. The token is checked once, at connect time;
the connection is then joined to its user's channel until it closes.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from slotswap.api.deps import get_push_hub
from slotswap.config import settings
from slotswap.core.constants import WS_CLOSE_UNAUTHORIZED
from slotswap.core.errors import AuthError
from slotswap.services.auth_service import authenticate
from slotswap.services.push import PushHub

router = APIRouter()
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def push_socket(websocket: WebSocket, token: str | None = Query(None)):
    try:
        user_id = authenticate(token)
    except AuthError as e:
        logger.info("Rejected push connection: %s", e)
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return
    hub: PushHub = websocket.app.state.push_hub
    await websocket.accept()
    await hub.join(user_id, websocket)
    try:
        # Server -> client only; reading just detects the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.leave(user_id, websocket)


class DebugEmitBody(BaseModel):
    userId: int
    event: str
    payload: Any = None


@router.post("/api/debug/emit")
def debug_emit(body: DebugEmitBody, hub: PushHub = Depends(get_push_hub)) -> dict:
    """
    Emit an arbitrary event to one user's connections (for testing clients).
    Only available when DEBUG_EMIT_ENABLED is set.
    """
    if not settings.debug_emit_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    sent = hub.emit_to_user(body.userId, body.event, body.payload if body.payload is not None else {})
    logger.info("Debug emit: event=%r to user %s (%s connection(s))", body.event, body.userId, sent)
    return {"ok": True, "connections": sent}
