"""Declarative base shared by all models."""
from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Python-side default so timestamps are loaded without a refresh after flush."""
    return datetime.now(timezone.utc)
