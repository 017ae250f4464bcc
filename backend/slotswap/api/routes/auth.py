"""Accounts: signup, login, and the current user's profile."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from slotswap.api.deps import get_accounts, get_current_user_id
from slotswap.services.auth_service import AccountService

router = APIRouter()


# Optional fields: missing values are reported by the service as a 400, not a 422.
class SignupBody(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginBody(BaseModel):
    email: str | None = None
    password: str | None = None


@router.post("/signup")
def signup(body: SignupBody, accounts: AccountService = Depends(get_accounts)):
    user, token = accounts.signup(body.name, body.email, body.password)
    return {"user": user.as_dict(), "token": token}


@router.post("/login")
def login(body: LoginBody, accounts: AccountService = Depends(get_accounts)):
    user, token = accounts.login(body.email, body.password)
    return {"user": user.as_dict(), "token": token}


@router.get("/me")
def me(
    user_id: int = Depends(get_current_user_id),
    accounts: AccountService = Depends(get_accounts),
):
    return accounts.get_user(user_id).as_dict()
