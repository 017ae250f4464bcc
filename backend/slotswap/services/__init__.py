from slotswap.services.auth_service import AccountService, authenticate
from slotswap.services.push import PushHub
from slotswap.services.slot_service import SlotStore
from slotswap.services.swap_notify import SwapNotifier
from slotswap.services.swap_service import SwapEngine

__all__ = ["AccountService", "authenticate", "PushHub", "SlotStore", "SwapNotifier", "SwapEngine"]
