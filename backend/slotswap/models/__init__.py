from slotswap.models.slot import Slot, SlotStatus
from slotswap.models.swap_request import SwapRequest, SwapStatus
from slotswap.models.user import User

__all__ = [
    "Slot",
    "SlotStatus",
    "SwapRequest",
    "SwapStatus",
    "User",
]
