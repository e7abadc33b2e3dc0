"""Message ORM — typed protocol messages and their mailbox deliveries.

Invariants:
    - type mutated at most once (consumption), via conditional UPDATE only
    - Partial unique index: one BorrowContract-Sent per transaction
    - Every message delivered to >= 1 mailbox (mailbox_entries rows);
      Borrow-Completed is one row delivered to both parties

Design Decisions:
    - Mailbox as an association table over a per-user array: the shared
      completion record is referenced, not duplicated
    - cascade delete for mailbox entries: message owns its deliveries
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from lendbridge.db.base import Base

CONTRACT_SENT_ONCE = "type = 'BorrowContract-Sent'"


class MessageModel(Base):
    """Protocol message row."""
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_type_transaction", "type", "transaction_id"),
        Index(
            "uq_messages_contract_sent", "transaction_id", unique=True,
            postgresql_where=text(CONTRACT_SENT_ONCE),
            sqlite_where=text(CONTRACT_SENT_ONCE),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    type: Mapped[str] = mapped_column(String(60), nullable=False)
    from_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    to_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    transaction_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("loan_transactions.id"), nullable=True,
    )
    listing_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id"), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    deliveries: Mapped[list["MailboxEntryModel"]] = relationship(
        "MailboxEntryModel", back_populates="message",
        cascade="all, delete-orphan", lazy="selectin",
    )


class MailboxEntryModel(Base):
    """Delivery of one message into one user's mailbox."""
    __tablename__ = "mailbox_entries"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
    message_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    message: Mapped["MessageModel"] = relationship(
        "MessageModel", back_populates="deliveries",
    )
