"""
Slot store: owner-facing reads and writes on slots.

Owners may create, edit, delete, and toggle a slot between BUSY and SWAPPABLE.
SWAP_PENDING is owned by the swap engine and is never reachable from here.
Every write runs in one unit of work and lock-reads the rows it changes.
"""
import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import or_
from sqlalchemy.orm import Session

from slotswap.core.errors import InvalidSlotError, NotFoundError, ValidationError
from slotswap.db.session import SessionLocal, unit_of_work
from slotswap.models.slot import Slot, SlotStatus
from slotswap.models.swap_request import SwapRequest, SwapStatus
from slotswap.models.user import User
from slotswap.services.swap_notify import SwapNotifier

logger = logging.getLogger(__name__)

OWNER_SETTABLE = (SlotStatus.BUSY, SlotStatus.SWAPPABLE)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def validate_interval(title: str | None, start: datetime | None, end: datetime | None) -> tuple[str, datetime, datetime]:
    """Return (title, start, end) normalized, or raise ValidationError."""
    title = (title or "").strip()
    if not title or start is None or end is None:
        raise ValidationError("title, start_time and end_time are required")
    start, end = _as_utc(start), _as_utc(end)
    if start >= end:
        raise ValidationError("start_time must be before end_time")
    return title, start, end


def parse_owner_status(value: str | SlotStatus) -> SlotStatus:
    try:
        status = SlotStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown status {value!r}") from None
    if status not in OWNER_SETTABLE:
        raise ValidationError("status must be BUSY or SWAPPABLE")
    return status


def _lock_owned_slot(db: Session, slot_id: int, user_id: int) -> Slot:
    slot = (
        db.query(Slot)
        .filter(Slot.id == slot_id, Slot.user_id == user_id)
        .with_for_update()
        .first()
    )
    if slot is None:
        raise NotFoundError("Event not found")
    return slot


class SlotStore:
    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        notifier: SwapNotifier | None = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier

    # --- reads ---

    def list_swappable(self, user_id: int) -> list[dict]:
        """SWAPPABLE slots of every other user, with the owner's display name."""
        with unit_of_work(self.session_factory) as db:
            rows = (
                db.query(Slot, User.name)
                .join(User, Slot.user_id == User.id)
                .filter(Slot.status == SlotStatus.SWAPPABLE, Slot.user_id != user_id)
                .order_by(Slot.start_time, Slot.id)
                .all()
            )
            return [{**slot.as_dict(), "owner_name": owner_name} for slot, owner_name in rows]

    def list_owned(self, user_id: int) -> list[Slot]:
        with unit_of_work(self.session_factory) as db:
            return (
                db.query(Slot)
                .filter(Slot.user_id == user_id)
                .order_by(Slot.start_time, Slot.id)
                .all()
            )

    # --- writes ---

    def create(self, user_id: int, title: str | None, start: datetime | None, end: datetime | None) -> Slot:
        title, start, end = validate_interval(title, start, end)
        with unit_of_work(self.session_factory) as db:
            slot = Slot(user_id=user_id, title=title, start_time=start, end_time=end, status=SlotStatus.BUSY)
            db.add(slot)
            db.flush()
        logger.info("Created slot %s for user %s", slot.id, user_id)
        return slot

    def update(
        self,
        slot_id: int,
        user_id: int,
        title: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Slot:
        """Partial update of title and times. A slot under negotiation is frozen."""
        with unit_of_work(self.session_factory) as db:
            slot = _lock_owned_slot(db, slot_id, user_id)
            if slot.status == SlotStatus.SWAP_PENDING:
                raise InvalidSlotError("Slot is part of a pending swap")
            slot.title, slot.start_time, slot.end_time = validate_interval(
                title if title is not None else slot.title,
                start if start is not None else slot.start_time,
                end if end is not None else slot.end_time,
            )
            db.flush()
        return slot

    def set_status(self, slot_id: int, user_id: int, new_status: str | SlotStatus) -> Slot:
        """Owner toggle between BUSY and SWAPPABLE."""
        status = parse_owner_status(new_status)
        with unit_of_work(self.session_factory) as db:
            slot = _lock_owned_slot(db, slot_id, user_id)
            slot.set_owner_status(status)
            db.flush()
        logger.info("Slot %s status set to %s by owner %s", slot_id, status.value, user_id)
        return slot

    def delete(self, slot_id: int, user_id: int) -> None:
        """
        Remove an owned slot and every swap request referencing it. A pending
        request's counterpart slot goes back to SWAPPABLE so it is not stranded
        in SWAP_PENDING.
        """
        with unit_of_work(self.session_factory) as db:
            slot = _lock_owned_slot(db, slot_id, user_id)
            references = or_(SwapRequest.requester_slot_id == slot_id, SwapRequest.responder_slot_id == slot_id)
            pending = (
                db.query(SwapRequest)
                .filter(references, SwapRequest.status == SwapStatus.PENDING)
                .with_for_update()
                .all()
            )
            dropped = []
            for req in pending:
                other_id = req.responder_slot_id if req.requester_slot_id == slot_id else req.requester_slot_id
                other = db.query(Slot).filter(Slot.id == other_id).with_for_update().first()
                if other is not None and other.status == SlotStatus.SWAP_PENDING:
                    other.release()
                dropped.append({**req.as_dict(), "status": SwapStatus.CANCELLED.value})
            db.query(SwapRequest).filter(references).delete(synchronize_session=False)
            db.delete(slot)
        logger.info("Deleted slot %s of user %s (%s pending request(s) dropped)", slot_id, user_id, len(dropped))
        if self.notifier is not None:
            for request in dropped:
                self.notifier.request_resolved(request, slots_changed=True)
