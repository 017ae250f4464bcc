"""
Notification fan-out for committed swap transactions.

Decides who hears about a transaction and with which payload, then hands each event
to the push channel. Called only after commit; delivery is best-effort, so failures
are logged here and never reach the caller.
"""
import logging
from typing import Any

from slotswap.core.constants import (
    EVENT_EVENTS_CHANGED,
    EVENT_SWAP_REQUEST_CREATED,
    EVENT_SWAP_REQUEST_CREATED_ACK,
    EVENT_SWAP_REQUEST_UPDATED,
)
from slotswap.services.push import PushChannel

logger = logging.getLogger(__name__)


class SwapNotifier:
    def __init__(self, channel: PushChannel):
        self.channel = channel

    def notify(self, user_id: int, event: str, payload: Any) -> None:
        try:
            self.channel.emit_to_user(user_id, event, payload)
        except Exception as e:
            logger.warning("Notify %s to user %s failed: %s", event, user_id, e, exc_info=True)

    def request_created(self, request: dict) -> None:
        """Responder sees the new request; requester gets an acknowledgement."""
        self.notify(request["responder_id"], EVENT_SWAP_REQUEST_CREATED, request)
        self.notify(request["requester_id"], EVENT_SWAP_REQUEST_CREATED_ACK, request)
        logger.info(
            "Emitted %s to user %s and ack to user %s",
            EVENT_SWAP_REQUEST_CREATED, request["responder_id"], request["requester_id"],
        )

    def request_resolved(self, request: dict, slots_changed: bool) -> None:
        """
        Both parties get {id, status}. When slot rows changed (accept, cancel) both
        also get events_changed with the two slot ids so clients refresh.
        """
        parties = (request["requester_id"], request["responder_id"])
        update = {"id": request["id"], "status": request["status"]}
        for user_id in parties:
            self.notify(user_id, EVENT_SWAP_REQUEST_UPDATED, update)
        if slots_changed:
            changed = {"updatedEventIds": [request["requester_slot_id"], request["responder_slot_id"]]}
            for user_id in parties:
                self.notify(user_id, EVENT_EVENTS_CHANGED, changed)
        logger.info(
            "Emitted %s(%s)%s for request %s to users %s and %s",
            EVENT_SWAP_REQUEST_UPDATED, request["status"],
            f" and {EVENT_EVENTS_CHANGED}" if slots_changed else "",
            request["id"], *parties,
        )
