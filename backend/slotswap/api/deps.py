"""
Shared route dependencies: caller identity and the service objects wired in main.py.
"""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from slotswap.core.errors import AuthError, swap_error_to_http
from slotswap.services.auth_service import AccountService, authenticate
from slotswap.services.push import PushHub
from slotswap.services.slot_service import SlotStore
from slotswap.services.swap_service import SwapEngine

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> int:
    try:
        return authenticate(credentials.credentials if credentials else None)
    except AuthError as e:
        raise swap_error_to_http(e) from None


def get_accounts(request: Request) -> AccountService:
    return request.app.state.accounts


def get_slot_store(request: Request) -> SlotStore:
    return request.app.state.slot_store


def get_swap_engine(request: Request) -> SwapEngine:
    return request.app.state.swap_engine


def get_push_hub(request: Request) -> PushHub:
    return request.app.state.push_hub
