"""
Swap marketplace: browse swappable slots, propose, respond, cancel, list requests.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from slotswap.api.deps import get_current_user_id, get_slot_store, get_swap_engine
from slotswap.services.slot_service import SlotStore
from slotswap.services.swap_service import SwapEngine, response_message

router = APIRouter()


class SwapProposal(BaseModel):
    mySlotId: int
    theirSlotId: int


class SwapResponse(BaseModel):
    accept: bool


@router.get("/swappable-slots")
def list_swappable_slots(
    user_id: int = Depends(get_current_user_id),
    store: SlotStore = Depends(get_slot_store),
) -> list[dict]:
    """Other users' SWAPPABLE slots, each with owner_name."""
    return store.list_swappable(user_id)


@router.post("/swap-request")
def create_swap_request(
    body: SwapProposal,
    user_id: int = Depends(get_current_user_id),
    engine: SwapEngine = Depends(get_swap_engine),
) -> dict:
    return engine.propose(user_id, body.mySlotId, body.theirSlotId).as_dict()


@router.post("/swap-response/{request_id}")
def respond_to_swap(
    request_id: int,
    body: SwapResponse,
    user_id: int = Depends(get_current_user_id),
    engine: SwapEngine = Depends(get_swap_engine),
) -> dict:
    """Responder accepts (owners exchanged) or rejects (slots back to SWAPPABLE)."""
    req = engine.respond(user_id, request_id, body.accept)
    return {"message": response_message(req.status), "id": req.id, "status": req.status.value}


@router.delete("/swap-request/{request_id}")
def cancel_swap_request(
    request_id: int,
    user_id: int = Depends(get_current_user_id),
    engine: SwapEngine = Depends(get_swap_engine),
) -> dict:
    req = engine.cancel(user_id, request_id)
    return {"message": response_message(req.status), "id": req.id, "status": req.status.value}


@router.get("/swap-requests")
def list_swap_requests(
    user_id: int = Depends(get_current_user_id),
    engine: SwapEngine = Depends(get_swap_engine),
) -> list[dict]:
    """Incoming and outgoing requests, newest first, with slot titles and party names."""
    return engine.list_requests(user_id)
