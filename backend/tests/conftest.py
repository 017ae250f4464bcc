"""
Shared fixtures: a throwaway SQLite database, users, and a recording push channel.

Environment is set before any slotswap import so settings and the engine pick it up.
"""
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="slotswap-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["SWAP_AUDIT_ENABLED"] = "false"
os.environ["DEBUG_EMIT_ENABLED"] = "true"

import pytest

from slotswap.db.base import Base
from slotswap.db.session import SessionLocal, engine
from slotswap.models import Slot, SlotStatus, SwapRequest, User
from slotswap.services.slot_service import SlotStore
from slotswap.services.swap_notify import SwapNotifier
from slotswap.services.swap_service import SwapEngine

BASE_TIME = datetime(2025, 3, 3, 9, 0, tzinfo=timezone.utc)


class RecordingChannel:
    """Push channel stand-in: records every emit instead of sending it."""

    def __init__(self):
        self.sent: list[tuple[int, str, object]] = []

    def emit_to_user(self, user_id, event, payload):
        self.sent.append((user_id, event, payload))
        return 1

    def events_for(self, user_id):
        return [(event, payload) for uid, event, payload in self.sent if uid == user_id]


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def notifier(channel):
    return SwapNotifier(channel)


@pytest.fixture
def swaps(notifier):
    return SwapEngine(notifier, session_factory=SessionLocal)


@pytest.fixture
def store(notifier):
    return SlotStore(session_factory=SessionLocal, notifier=notifier)


@pytest.fixture
def make_user():
    def _make(name):
        db = SessionLocal()
        try:
            user = User(name=name, email=f"{name.lower()}@example.com", password_hash="x")
            db.add(user)
            db.commit()
            return user.id
        finally:
            db.close()

    return _make


@pytest.fixture
def alice(make_user):
    return make_user("Alice")


@pytest.fixture
def bob(make_user):
    return make_user("Bob")


@pytest.fixture
def carol(make_user):
    return make_user("Carol")


@pytest.fixture
def make_slot(store):
    """Create a slot for user_id, optionally SWAPPABLE. Each call gets the next hour."""
    counter = {"n": 0}

    def _make(user_id, title="Shift", swappable=True):
        start = BASE_TIME + timedelta(hours=counter["n"])
        counter["n"] += 1
        slot = store.create(user_id, title, start, start + timedelta(hours=1))
        if swappable:
            slot = store.set_status(slot.id, user_id, SlotStatus.SWAPPABLE)
        return slot.id

    return _make


@pytest.fixture
def read_slot():
    def _read(slot_id):
        db = SessionLocal()
        try:
            slot = db.get(Slot, slot_id)
            return None if slot is None else (slot.user_id, slot.status)
        finally:
            db.close()

    return _read


@pytest.fixture
def read_request():
    def _read(request_id):
        db = SessionLocal()
        try:
            req = db.get(SwapRequest, request_id)
            return None if req is None else req.status
        finally:
            db.close()

    return _read


@pytest.fixture
def count_requests():
    def _count():
        db = SessionLocal()
        try:
            return db.query(SwapRequest).count()
        finally:
            db.close()

    return _count
