from slotswap.db.base import Base
from slotswap.db.session import SessionLocal, engine, unit_of_work
from slotswap.db.tables import ALL_TABLE_NAMES

__all__ = ["engine", "SessionLocal", "Base", "unit_of_work", "ALL_TABLE_NAMES"]
