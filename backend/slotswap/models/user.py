"""Marketplace account. Owns slots; party to swap requests."""
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from slotswap.db.base import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def as_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}
