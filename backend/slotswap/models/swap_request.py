"""
Swap request: a proposed exchange of the requester's slot for the responder's slot.

responder_id is derived from the owner of the targeted slot at proposal time.
PENDING moves exactly once to ACCEPTED, REJECTED or CANCELLED and is never reopened.
Partial unique indexes keep a slot out of more than one PENDING request per side.
"""
import enum

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Index, Integer, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from slotswap.core.errors import NotFoundError
from slotswap.db.base import Base, utcnow

_PENDING_ONLY = text("status = 'PENDING'")


class SwapStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class SwapRequest(Base):
    __tablename__ = "swap_requests"
    __table_args__ = (
        CheckConstraint("requester_slot_id <> responder_slot_id", name="ck_swap_requests_distinct_slots"),
        Index(
            "ux_swap_requests_pending_requester_slot",
            "requester_slot_id",
            unique=True,
            postgresql_where=_PENDING_ONLY,
            sqlite_where=_PENDING_ONLY,
        ),
        Index(
            "ux_swap_requests_pending_responder_slot",
            "responder_slot_id",
            unique=True,
            postgresql_where=_PENDING_ONLY,
            sqlite_where=_PENDING_ONLY,
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    requester_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    responder_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    requester_slot_id = Column(Integer, ForeignKey("slots.id", ondelete="CASCADE"), nullable=False)
    responder_slot_id = Column(Integer, ForeignKey("slots.id", ondelete="CASCADE"), nullable=False)
    status = Column(
        Enum(SwapStatus, name="swap_status", native_enum=False, length=20),
        nullable=False,
        default=SwapStatus.PENDING,
        index=True,
    )
    version = Column(Integer, nullable=False, server_default="1")
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)  # set on the terminal transition

    requester = relationship("User", foreign_keys=[requester_id])
    responder = relationship("User", foreign_keys=[responder_id])
    requester_slot = relationship("Slot", foreign_keys=[requester_slot_id])
    responder_slot = relationship("Slot", foreign_keys=[responder_slot_id])

    __mapper_args__ = {"version_id_col": version}

    @property
    def slot_ids(self) -> list[int]:
        return [self.requester_slot_id, self.responder_slot_id]

    def _resolve(self, status: SwapStatus) -> None:
        # A resolved request looks exactly like a missing one to callers.
        if self.status != SwapStatus.PENDING:
            raise NotFoundError("Request not found")
        self.status = status
        self.resolved_at = utcnow()

    def accept(self) -> None:
        self._resolve(SwapStatus.ACCEPTED)

    def reject(self) -> None:
        self._resolve(SwapStatus.REJECTED)

    def cancel(self) -> None:
        self._resolve(SwapStatus.CANCELLED)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "requester_id": self.requester_id,
            "responder_id": self.responder_id,
            "requester_slot_id": self.requester_slot_id,
            "responder_slot_id": self.responder_slot_id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }
