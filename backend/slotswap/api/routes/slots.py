"""
Slots ("events" in the client): the caller's own calendar entries.

Status changes here are limited to BUSY <-> SWAPPABLE; swaps move slots in and out
of SWAP_PENDING through /api/swap-* instead.
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from slotswap.api.deps import get_current_user_id, get_slot_store
from slotswap.services.slot_service import SlotStore

router = APIRouter()


class SlotCreate(BaseModel):
    title: str | None = None
    startTime: datetime | None = None
    endTime: datetime | None = None


class SlotUpdate(BaseModel):
    title: str | None = None
    startTime: datetime | None = None
    endTime: datetime | None = None


class SlotStatusBody(BaseModel):
    status: str


@router.get("")
def list_my_slots(
    user_id: int = Depends(get_current_user_id),
    store: SlotStore = Depends(get_slot_store),
) -> list[dict]:
    return [slot.as_dict() for slot in store.list_owned(user_id)]


@router.post("")
def create_slot(
    body: SlotCreate,
    user_id: int = Depends(get_current_user_id),
    store: SlotStore = Depends(get_slot_store),
) -> dict:
    """Create a BUSY slot. Use PATCH /{id}/status to offer it for swapping."""
    return store.create(user_id, body.title, body.startTime, body.endTime).as_dict()


@router.put("/{slot_id}")
def update_slot(
    slot_id: int,
    body: SlotUpdate,
    user_id: int = Depends(get_current_user_id),
    store: SlotStore = Depends(get_slot_store),
) -> dict:
    """Partial update of title and times (fields left out keep their value)."""
    return store.update(slot_id, user_id, title=body.title, start=body.startTime, end=body.endTime).as_dict()


@router.patch("/{slot_id}/status")
def set_slot_status(
    slot_id: int,
    body: SlotStatusBody,
    user_id: int = Depends(get_current_user_id),
    store: SlotStore = Depends(get_slot_store),
) -> dict:
    return store.set_status(slot_id, user_id, body.status).as_dict()


@router.delete("/{slot_id}")
def delete_slot(
    slot_id: int,
    user_id: int = Depends(get_current_user_id),
    store: SlotStore = Depends(get_slot_store),
) -> dict:
    store.delete(slot_id, user_id)
    return {"message": "Event deleted"}
