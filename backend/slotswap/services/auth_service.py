"""
Identity: accounts, password hashing, and HS256 bearer tokens.

authenticate(token) is the single entry point the rest of the app uses to turn a
caller into a numeric user id (HTTP routes and the WebSocket handshake alike).
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from slotswap.config import settings
from slotswap.core.constants import MIN_PASSWORD_LENGTH
from slotswap.core.errors import AuthError, NotFoundError, ValidationError
from slotswap.db.session import SessionLocal, unit_of_work
from slotswap.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=settings.access_token_expire_hours))
    token = jwt.encode({"id": user_id, "exp": expire}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def authenticate(token: str | None) -> int:
    """Verify a bearer token and return the user id it was issued for."""
    if not token:
        raise AuthError("No token provided")
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired") from None
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token") from None
    user_id = payload.get("id")
    if not isinstance(user_id, int):
        raise AuthError("Invalid token")
    return user_id


class AccountService:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def signup(self, name: str | None, email: str | None, password: str | None) -> tuple[User, str]:
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        try:
            with unit_of_work(self.session_factory) as db:
                if db.query(User.id).filter(User.email == email).first() is not None:
                    raise ValidationError("Email already exists")
                user = User(name=name, email=email, password_hash=hash_password(password))
                db.add(user)
                db.flush()
        except IntegrityError:
            # Concurrent signup with the same email won the unique index
            raise ValidationError("Email already exists") from None
        logger.info("Registered user %s", user.id)
        return user, create_access_token(user.id)

    def login(self, email: str | None, password: str | None) -> tuple[User, str]:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")
        with unit_of_work(self.session_factory) as db:
            user = db.query(User).filter(User.email == email).first()
        if user is None or not verify_password(password, user.password_hash):
            raise AuthError("Invalid credentials")
        return user, create_access_token(user.id)

    def get_user(self, user_id: int) -> User:
        with unit_of_work(self.session_factory) as db:
            user = db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
