"""
Swap state audit: report rows that break the slot/request invariants.

Read-only. A healthy database returns three empty lists:
- orphan_pending_slots: slot is SWAP_PENDING but no PENDING request references it
- stale_pending_requests: PENDING request whose two slots are not both SWAP_PENDING
- double_booked_slots: slot referenced by more than one PENDING request
"""
from collections import Counter

from sqlalchemy.orm import Session

from slotswap.models.slot import Slot, SlotStatus
from slotswap.models.swap_request import SwapRequest, SwapStatus


def audit_swap_state(db: Session) -> dict[str, list[int]]:
    pending = db.query(SwapRequest).filter(SwapRequest.status == SwapStatus.PENDING).all()
    refs = Counter(slot_id for req in pending for slot_id in req.slot_ids)

    pending_slot_ids = {
        slot_id for (slot_id,) in db.query(Slot.id).filter(Slot.status == SlotStatus.SWAP_PENDING).all()
    }
    return {
        "orphan_pending_slots": sorted(pending_slot_ids - set(refs)),
        "stale_pending_requests": sorted(
            req.id for req in pending if not all(slot_id in pending_slot_ids for slot_id in req.slot_ids)
        ),
        "double_booked_slots": sorted(slot_id for slot_id, n in refs.items() if n > 1),
    }
