"""
Tests for the slot and swap request state machines (no database needed).
"""
import pytest

from slotswap.core.errors import InvalidSlotError, NotFoundError
from slotswap.models import Slot, SlotStatus, SwapRequest, SwapStatus


def _slot(status, user_id=1):
    return Slot(id=10, user_id=user_id, title="Shift", status=status)


class TestSlotTransitions:
    """Owner and engine transitions on Slot."""

    def test_owner_toggles_between_busy_and_swappable(self):
        slot = _slot(SlotStatus.BUSY)
        slot.set_owner_status(SlotStatus.SWAPPABLE)
        assert slot.status == SlotStatus.SWAPPABLE
        slot.set_owner_status(SlotStatus.BUSY)
        assert slot.status == SlotStatus.BUSY

    def test_owner_cannot_enter_swap_pending(self):
        slot = _slot(SlotStatus.SWAPPABLE)
        with pytest.raises(InvalidSlotError):
            slot.set_owner_status(SlotStatus.SWAP_PENDING)

    def test_owner_cannot_leave_swap_pending(self):
        slot = _slot(SlotStatus.SWAP_PENDING)
        for target in SlotStatus:
            with pytest.raises(InvalidSlotError):
                slot.set_owner_status(target)
        assert slot.status == SlotStatus.SWAP_PENDING

    def test_mark_pending_requires_swappable(self):
        slot = _slot(SlotStatus.BUSY)
        with pytest.raises(InvalidSlotError, match="expected SWAPPABLE"):
            slot.mark_pending()
        slot = _slot(SlotStatus.SWAPPABLE)
        slot.mark_pending()
        assert slot.status == SlotStatus.SWAP_PENDING

    def test_release_and_settle_leave_swap_pending(self):
        released = _slot(SlotStatus.SWAP_PENDING)
        released.release()
        assert released.status == SlotStatus.SWAPPABLE

        settled = _slot(SlotStatus.SWAP_PENDING)
        settled.settle()
        assert settled.status == SlotStatus.BUSY

    def test_transfer_only_during_pending_swap(self):
        slot = _slot(SlotStatus.SWAPPABLE, user_id=1)
        with pytest.raises(InvalidSlotError):
            slot.transfer_to(2)
        assert slot.user_id == 1

        slot = _slot(SlotStatus.SWAP_PENDING, user_id=1)
        slot.transfer_to(2)
        assert slot.is_owned_by(2)


class TestSwapRequestTransitions:
    """PENDING resolves exactly once."""

    @pytest.mark.parametrize(
        "action, expected",
        [("accept", SwapStatus.ACCEPTED), ("reject", SwapStatus.REJECTED), ("cancel", SwapStatus.CANCELLED)],
    )
    def test_pending_resolves_to_terminal_status(self, action, expected):
        req = SwapRequest(status=SwapStatus.PENDING, requester_slot_id=1, responder_slot_id=2)
        getattr(req, action)()
        assert req.status == expected
        assert req.resolved_at is not None

    def test_terminal_request_is_never_reopened(self):
        req = SwapRequest(status=SwapStatus.PENDING, requester_slot_id=1, responder_slot_id=2)
        req.reject()
        for action in ("accept", "reject", "cancel"):
            with pytest.raises(NotFoundError):
                getattr(req, action)()
        assert req.status == SwapStatus.REJECTED

    def test_slot_ids_lists_both_sides(self):
        req = SwapRequest(requester_slot_id=5, responder_slot_id=9)
        assert req.slot_ids == [5, 9]
