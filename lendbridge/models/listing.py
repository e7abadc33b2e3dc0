"""Listing ORM — persists Borrow (loan request) and Lend (loan offer) listings.

Invariants:
    - id is UUID primary key
    - kind is "borrow" | "lend"; one table for both (protocol reads the same three fields)
    - owner_id, deadline, max_amount are non-nullable

Design Decisions:
    - Single table with kind discriminator over two tables: recommendation and
      request lookups hit one index (ADR: simplicity)
    - Borrow-only descriptive columns nullable; lend rows leave them empty
"""

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Text, Integer, Numeric, Date, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from lendbridge.db.base import Base


class ListingModel(Base):
    """Borrow or Lend listing row."""
    __tablename__ = "listings"
    __table_args__ = (
        Index("ix_listings_kind_deadline", "kind", "deadline"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    deadline: Mapped[date] = mapped_column(Date, nullable=False)
    max_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    max_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 3), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    project: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_factor: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
