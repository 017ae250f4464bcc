"""
Slot: an owned, schedulable time interval that can be offered for exchange.

status is a closed enum. Owners move a slot between BUSY and SWAPPABLE; only the
swap engine moves it into or out of SWAP_PENDING, and ownership changes only while
a swap is being accepted. The methods below are the only mutation path for both.
version is an optimistic lock: a flush against a row another transaction already
changed fails with StaleDataError instead of overwriting it.
"""
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from slotswap.core.errors import InvalidSlotError
from slotswap.db.base import Base, utcnow


class SlotStatus(str, enum.Enum):
    BUSY = "BUSY"
    SWAPPABLE = "SWAPPABLE"
    SWAP_PENDING = "SWAP_PENDING"


# Transitions an owner may request directly.
OWNER_TRANSITIONS: dict[SlotStatus, frozenset[SlotStatus]] = {
    SlotStatus.BUSY: frozenset({SlotStatus.BUSY, SlotStatus.SWAPPABLE}),
    SlotStatus.SWAPPABLE: frozenset({SlotStatus.BUSY, SlotStatus.SWAPPABLE}),
    SlotStatus.SWAP_PENDING: frozenset(),
}


class Slot(Base):
    __tablename__ = "slots"
    __table_args__ = (CheckConstraint("start_time < end_time", name="ck_slots_time_order"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(SlotStatus, name="slot_status", native_enum=False, length=20),
        nullable=False,
        default=SlotStatus.BUSY,
        index=True,
    )
    version = Column(Integer, nullable=False, server_default="1")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    owner = relationship("User")

    __mapper_args__ = {"version_id_col": version}

    def is_owned_by(self, user_id: int) -> bool:
        return self.user_id == user_id

    # --- owner transitions ---

    def set_owner_status(self, new_status: SlotStatus) -> None:
        if new_status not in OWNER_TRANSITIONS[self.status]:
            raise InvalidSlotError(
                f"Cannot change slot status from {self.status.value} to {new_status.value}"
            )
        self.status = new_status

    # --- engine transitions ---

    def _require(self, expected: SlotStatus) -> None:
        if self.status != expected:
            raise InvalidSlotError(f"Slot {self.id} is {self.status.value}, expected {expected.value}")

    def mark_pending(self) -> None:
        """SWAPPABLE -> SWAP_PENDING when a proposal references this slot."""
        self._require(SlotStatus.SWAPPABLE)
        self.status = SlotStatus.SWAP_PENDING

    def release(self) -> None:
        """SWAP_PENDING -> SWAPPABLE on reject or cancel."""
        self._require(SlotStatus.SWAP_PENDING)
        self.status = SlotStatus.SWAPPABLE

    def settle(self) -> None:
        """SWAP_PENDING -> BUSY once the exchange is accepted."""
        self._require(SlotStatus.SWAP_PENDING)
        self.status = SlotStatus.BUSY

    def transfer_to(self, user_id: int) -> None:
        """Reassign ownership as part of an accepted swap."""
        self._require(SlotStatus.SWAP_PENDING)
        self.user_id = user_id

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
