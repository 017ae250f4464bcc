"""
Tests for the slot store: owner CRUD and BUSY/SWAPPABLE toggling.
"""
from datetime import timedelta

import pytest

from conftest import BASE_TIME
from slotswap.core.errors import InvalidSlotError, NotFoundError, ValidationError
from slotswap.core.constants import EVENT_EVENTS_CHANGED, EVENT_SWAP_REQUEST_UPDATED
from slotswap.models import SlotStatus, SwapStatus


def test_create_defaults_to_busy(store, alice):
    slot = store.create(alice, "  Morning shift ", BASE_TIME, BASE_TIME + timedelta(hours=2))

    assert slot.id is not None
    assert slot.user_id == alice
    assert slot.title == "Morning shift"
    assert slot.status == SlotStatus.BUSY


@pytest.mark.parametrize(
    "title, start, end",
    [
        ("Shift", BASE_TIME, BASE_TIME),
        ("Shift", BASE_TIME + timedelta(hours=1), BASE_TIME),
        ("", BASE_TIME, BASE_TIME + timedelta(hours=1)),
        ("Shift", None, BASE_TIME + timedelta(hours=1)),
        ("Shift", BASE_TIME, None),
    ],
)
def test_create_rejects_bad_input(store, alice, title, start, end):
    with pytest.raises(ValidationError):
        store.create(alice, title, start, end)
    assert store.list_owned(alice) == []


def test_list_owned_returns_every_status(store, make_slot, alice, bob):
    busy = make_slot(alice, "Busy", swappable=False)
    swappable = make_slot(alice, "Open")
    make_slot(bob, "Not mine")

    owned = store.list_owned(alice)

    assert [s.id for s in owned] == [busy, swappable]
    assert {s.status for s in owned} == {SlotStatus.BUSY, SlotStatus.SWAPPABLE}


def test_list_swappable_excludes_own_and_busy_slots(store, make_slot, alice, bob, carol):
    make_slot(alice, "Alice open")
    bob_open = make_slot(bob, "Bob open")
    make_slot(bob, "Bob busy", swappable=False)
    carol_open = make_slot(carol, "Carol open")

    rows = store.list_swappable(alice)

    assert [r["id"] for r in rows] == [bob_open, carol_open]
    assert [r["owner_name"] for r in rows] == ["Bob", "Carol"]
    assert all(r["status"] == "SWAPPABLE" for r in rows)


def test_set_status_is_owner_only(store, make_slot, alice, bob):
    slot_id = make_slot(alice, swappable=False)

    with pytest.raises(NotFoundError):
        store.set_status(slot_id, bob, "SWAPPABLE")
    with pytest.raises(NotFoundError):
        store.set_status(9999, alice, "SWAPPABLE")

    assert store.set_status(slot_id, alice, "SWAPPABLE").status == SlotStatus.SWAPPABLE
    assert store.set_status(slot_id, alice, "BUSY").status == SlotStatus.BUSY


@pytest.mark.parametrize("value", ["SWAP_PENDING", "OPEN", ""])
def test_set_status_rejects_engine_or_unknown_status(store, make_slot, alice, value):
    slot_id = make_slot(alice, swappable=False)
    with pytest.raises(ValidationError):
        store.set_status(slot_id, alice, value)


def test_pending_slot_is_frozen_for_owner(store, swaps, make_slot, read_slot, alice, bob):
    mine, theirs = make_slot(alice), make_slot(bob)
    swaps.propose(alice, mine, theirs)

    with pytest.raises(InvalidSlotError):
        store.set_status(mine, alice, "BUSY")
    with pytest.raises(InvalidSlotError):
        store.update(mine, alice, title="Renamed")

    assert read_slot(mine) == (alice, SlotStatus.SWAP_PENDING)


def test_update_is_partial_and_keeps_order(store, make_slot, alice, bob):
    slot_id = make_slot(alice, "Old title", swappable=False)

    slot = store.update(slot_id, alice, title="New title")
    assert slot.title == "New title"

    with pytest.raises(ValidationError):
        store.update(slot_id, alice, end=BASE_TIME - timedelta(days=1))
    with pytest.raises(NotFoundError):
        store.update(slot_id, bob, title="Hijack")

    assert store.list_owned(alice)[0].title == "New title"


def test_delete_is_owner_only(store, make_slot, alice, bob):
    slot_id = make_slot(alice)

    with pytest.raises(NotFoundError):
        store.delete(slot_id, bob)
    store.delete(slot_id, alice)

    assert store.list_owned(alice) == []
    with pytest.raises(NotFoundError):
        store.delete(slot_id, alice)


def test_delete_cascades_requests_and_frees_counterpart(
    store, swaps, channel, make_slot, read_slot, count_requests, alice, bob
):
    mine, theirs = make_slot(alice), make_slot(bob)
    req = swaps.propose(alice, mine, theirs)
    channel.sent.clear()

    store.delete(theirs, bob)

    assert read_slot(theirs) is None
    assert read_slot(mine) == (alice, SlotStatus.SWAPPABLE)
    assert count_requests() == 0
    assert (EVENT_SWAP_REQUEST_UPDATED, {"id": req.id, "status": SwapStatus.CANCELLED.value}) in channel.events_for(alice)
    assert any(event == EVENT_EVENTS_CHANGED for event, _ in channel.events_for(alice))


def test_delete_removes_resolved_request_history(store, swaps, make_slot, count_requests, alice, bob):
    mine, theirs = make_slot(alice), make_slot(bob)
    req = swaps.propose(alice, mine, theirs)
    swaps.respond(bob, req.id, accept=False)

    store.delete(mine, alice)

    assert count_requests() == 0
