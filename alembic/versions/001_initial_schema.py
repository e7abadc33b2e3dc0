"""Initial schema — listings, loan_transactions, messages, mailbox_entries, friendships, timeline_items.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

CONTRACT_SENT_ONCE = "type = 'BorrowContract-Sent'"


def upgrade() -> None:
    op.create_table(
        "listings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("kind", sa.String(10), nullable=False),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=False),
        sa.Column("deadline", sa.Date, nullable=False),
        sa.Column("max_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("max_rate", sa.Numeric(6, 3), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("project", sa.String(200), nullable=True),
        sa.Column("reason", sa.Text, nullable=True),
        sa.Column("risk_factor", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_listings_owner_id", "listings", ["owner_id"])
    op.create_index("ix_listings_kind_deadline", "listings", ["kind", "deadline"])

    op.create_table(
        "loan_transactions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("initiator_id", UUID(as_uuid=True), nullable=False),
        sa.Column("borrow_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("lend_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="Requested"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "messages",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("type", sa.String(60), nullable=False),
        sa.Column("from_id", UUID(as_uuid=True), nullable=True),
        sa.Column("to_id", UUID(as_uuid=True), nullable=True),
        sa.Column("transaction_id", UUID(as_uuid=True), sa.ForeignKey("loan_transactions.id"), nullable=True),
        sa.Column("listing_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_messages_type_transaction", "messages", ["type", "transaction_id"])
    op.create_index(
        "uq_messages_contract_sent", "messages", ["transaction_id"], unique=True,
        postgresql_where=sa.text(CONTRACT_SENT_ONCE),
        sqlite_where=sa.text(CONTRACT_SENT_ONCE),
    )

    op.create_table(
        "mailbox_entries",
        sa.Column("user_id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "message_id", UUID(as_uuid=True),
            sa.ForeignKey("messages.id", ondelete="CASCADE"), primary_key=True,
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "friendships",
        sa.Column("user_id", UUID(as_uuid=True), primary_key=True),
        sa.Column("friend_id", UUID(as_uuid=True), primary_key=True),
    )

    op.create_table(
        "timeline_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("from_id", UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(30), nullable=False),
        sa.Column("info", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_timeline_items_from_id", "timeline_items", ["from_id"])


def downgrade() -> None:
    op.drop_table("timeline_items")
    op.drop_table("friendships")
    op.drop_table("mailbox_entries")
    op.drop_table("messages")
    op.drop_table("loan_transactions")
    op.drop_table("listings")
