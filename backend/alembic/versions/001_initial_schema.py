"""Users, slots and swap requests.

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

slots.status and swap_requests.status are VARCHAR enums (BUSY/SWAPPABLE/SWAP_PENDING,
PENDING/ACCEPTED/REJECTED/CANCELLED). version columns back the ORM optimistic lock.
Partial unique indexes allow one PENDING request per requester slot and per responder slot.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_PENDING_ONLY = sa.text("status = 'PENDING'")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "slots",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="BUSY"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_time < end_time", name="ck_slots_time_order"),
    )
    op.create_index("ix_slots_user_id", "slots", ["user_id"], unique=False)
    op.create_index("ix_slots_status", "slots", ["status"], unique=False)

    op.create_table(
        "swap_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("requester_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("responder_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("requester_slot_id", sa.Integer(), sa.ForeignKey("slots.id", ondelete="CASCADE"), nullable=False),
        sa.Column("responder_slot_id", sa.Integer(), sa.ForeignKey("slots.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("requester_slot_id <> responder_slot_id", name="ck_swap_requests_distinct_slots"),
    )
    op.create_index("ix_swap_requests_requester_id", "swap_requests", ["requester_id"], unique=False)
    op.create_index("ix_swap_requests_responder_id", "swap_requests", ["responder_id"], unique=False)
    op.create_index("ix_swap_requests_status", "swap_requests", ["status"], unique=False)
    op.create_index(
        "ux_swap_requests_pending_requester_slot",
        "swap_requests",
        ["requester_slot_id"],
        unique=True,
        postgresql_where=_PENDING_ONLY,
        sqlite_where=_PENDING_ONLY,
    )
    op.create_index(
        "ux_swap_requests_pending_responder_slot",
        "swap_requests",
        ["responder_slot_id"],
        unique=True,
        postgresql_where=_PENDING_ONLY,
        sqlite_where=_PENDING_ONLY,
    )


def downgrade() -> None:
    op.drop_index("ux_swap_requests_pending_responder_slot", table_name="swap_requests")
    op.drop_index("ux_swap_requests_pending_requester_slot", table_name="swap_requests")
    op.drop_index("ix_swap_requests_status", table_name="swap_requests")
    op.drop_index("ix_swap_requests_responder_id", table_name="swap_requests")
    op.drop_index("ix_swap_requests_requester_id", table_name="swap_requests")
    op.drop_table("swap_requests")
    op.drop_index("ix_slots_status", table_name="slots")
    op.drop_index("ix_slots_user_id", table_name="slots")
    op.drop_table("slots")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
