"""
Swap transaction engine: propose, respond (accept/reject), cancel.

Each operation is one unit of work: lock-read the rows it will touch, validate
against that fresh state, mutate slots and request together, commit. Nothing is
kept in memory between calls. Notifications go out only after commit, through the
notifier given at construction.

Races: row locks (SELECT ... FOR UPDATE) serialize concurrent operations on the
same rows; slots are always locked in id order. Where the store has no row locks
(SQLite) the version columns turn a lost race into a stale flush, which is reported
the same way the locked path reports it: InvalidSlotError for propose,
NotFoundError for respond and cancel.
"""
import logging
from typing import Callable

from sqlalchemy import or_
from sqlalchemy.orm import Session, aliased
from sqlalchemy.orm.exc import StaleDataError

from slotswap.core.errors import InvalidSlotError, NotFoundError
from slotswap.db.session import SessionLocal, unit_of_work
from slotswap.models.slot import Slot, SlotStatus
from slotswap.models.swap_request import SwapRequest, SwapStatus
from slotswap.models.user import User
from slotswap.services.swap_notify import SwapNotifier

logger = logging.getLogger(__name__)

RESPONSE_MESSAGES = {
    SwapStatus.ACCEPTED: "Accepted",
    SwapStatus.REJECTED: "Rejected",
    SwapStatus.CANCELLED: "Cancelled",
}


def _lock_slots(db: Session, slot_ids: list[int]) -> dict[int, Slot]:
    rows = (
        db.query(Slot)
        .filter(Slot.id.in_(slot_ids))
        .order_by(Slot.id)
        .with_for_update()
        .all()
    )
    return {slot.id: slot for slot in rows}


def _lock_pending_request(db: Session, request_id: int, **party) -> SwapRequest:
    """PENDING request with this id where the caller is the given party, else NotFoundError."""
    query = db.query(SwapRequest).filter(
        SwapRequest.id == request_id,
        SwapRequest.status == SwapStatus.PENDING,
    )
    for column, user_id in party.items():
        query = query.filter(getattr(SwapRequest, column) == user_id)
    req = query.with_for_update().first()
    if req is None:
        raise NotFoundError("Request not found")
    return req


class SwapEngine:
    def __init__(self, notifier: SwapNotifier, session_factory: Callable[[], Session] = SessionLocal):
        self.notifier = notifier
        self.session_factory = session_factory

    # --- propose ---

    def propose(self, requester_id: int, my_slot_id: int, their_slot_id: int) -> SwapRequest:
        """
        Offer my_slot_id (owned by requester) for their_slot_id (owned by anyone else).
        Both must be SWAPPABLE. The responder is whoever owns their_slot_id at lock time.
        """
        if my_slot_id == their_slot_id:
            raise InvalidSlotError("Invalid slots")
        with unit_of_work(self.session_factory) as db:
            slots = _lock_slots(db, [my_slot_id, their_slot_id])
            mine, theirs = slots.get(my_slot_id), slots.get(their_slot_id)
            if (
                mine is None
                or not mine.is_owned_by(requester_id)
                or mine.status != SlotStatus.SWAPPABLE
                or theirs is None
                or theirs.is_owned_by(requester_id)
                or theirs.status != SlotStatus.SWAPPABLE
            ):
                raise InvalidSlotError("Invalid slots")
            # Derived from the locked row, never from caller input.
            responder_id = theirs.user_id

            req = SwapRequest(
                requester_id=requester_id,
                responder_id=responder_id,
                requester_slot_id=mine.id,
                responder_slot_id=theirs.id,
                status=SwapStatus.PENDING,
            )
            mine.mark_pending()
            theirs.mark_pending()
            db.add(req)
            try:
                db.flush()
            except StaleDataError:
                raise InvalidSlotError("Invalid slots") from None
            created = req.as_dict()

        logger.info(
            "Swap request %s created: user %s offers slot %s for slot %s of user %s",
            req.id, requester_id, my_slot_id, their_slot_id, responder_id,
        )
        self.notifier.request_created(created)
        return req

    # --- respond ---

    def respond(self, responder_id: int, request_id: int, accept: bool) -> SwapRequest:
        """
        Accept: owners are exchanged and both slots become BUSY.
        Reject: both slots go back to SWAPPABLE, owners unchanged.
        """
        with unit_of_work(self.session_factory) as db:
            req = _lock_pending_request(db, request_id, responder_id=responder_id)
            slots = _lock_slots(db, req.slot_ids)
            requester_slot = slots.get(req.requester_slot_id)
            responder_slot = slots.get(req.responder_slot_id)
            if requester_slot is None or responder_slot is None:
                raise NotFoundError("Request not found")

            if accept:
                requester_slot.transfer_to(req.responder_id)
                responder_slot.transfer_to(req.requester_id)
                requester_slot.settle()
                responder_slot.settle()
                req.accept()
            else:
                requester_slot.release()
                responder_slot.release()
                req.reject()
            try:
                db.flush()
            except StaleDataError:
                raise NotFoundError("Request not found") from None
            resolved = req.as_dict()

        logger.info("Swap request %s %s by user %s", request_id, req.status.value, responder_id)
        self.notifier.request_resolved(resolved, slots_changed=accept)
        return req

    # --- cancel ---

    def cancel(self, requester_id: int, request_id: int) -> SwapRequest:
        """Requester withdraws a PENDING request; both slots go back to SWAPPABLE."""
        with unit_of_work(self.session_factory) as db:
            req = _lock_pending_request(db, request_id, requester_id=requester_id)
            slots = _lock_slots(db, req.slot_ids)
            for slot_id in req.slot_ids:
                slot = slots.get(slot_id)
                if slot is None:
                    raise NotFoundError("Request not found")
                slot.release()
            req.cancel()
            try:
                db.flush()
            except StaleDataError:
                raise NotFoundError("Request not found") from None
            resolved = req.as_dict()

        logger.info("Swap request %s CANCELLED by user %s", request_id, requester_id)
        self.notifier.request_resolved(resolved, slots_changed=True)
        return req

    # --- reads ---

    def list_requests(self, user_id: int) -> list[dict]:
        """Incoming and outgoing requests of user_id, newest first, with slot titles and party names."""
        requester_slot = aliased(Slot)
        responder_slot = aliased(Slot)
        requester = aliased(User)
        responder = aliased(User)
        with unit_of_work(self.session_factory) as db:
            rows = (
                db.query(
                    SwapRequest,
                    requester_slot.title,
                    responder_slot.title,
                    requester.name,
                    responder.name,
                )
                .join(requester_slot, SwapRequest.requester_slot_id == requester_slot.id)
                .join(responder_slot, SwapRequest.responder_slot_id == responder_slot.id)
                .join(requester, SwapRequest.requester_id == requester.id)
                .join(responder, SwapRequest.responder_id == responder.id)
                .filter(or_(SwapRequest.requester_id == user_id, SwapRequest.responder_id == user_id))
                .order_by(SwapRequest.created_at.desc(), SwapRequest.id.desc())
                .all()
            )
            return [
                {
                    **req.as_dict(),
                    "requester_title": requester_title,
                    "responder_title": responder_title,
                    "requester_name": requester_name,
                    "responder_name": responder_name,
                }
                for req, requester_title, responder_title, requester_name, responder_name in rows
            ]


def response_message(status: SwapStatus) -> str:
    return RESPONSE_MESSAGES[status]
