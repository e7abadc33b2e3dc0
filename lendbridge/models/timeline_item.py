"""TimelineItem ORM — social-feed entries posted after successful operations.

Invariants:
    - Written fire-and-forget after the triggering operation has committed
    - No protocol logic reads this table

Design Decisions:
    - JSON column for info: entries reference a listing or a transaction
      depending on kind (ADR: flexible schema, observability-grade data)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from lendbridge.db.base import Base


class TimelineItemModel(Base):
    """Feed entry."""
    __tablename__ = "timeline_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    from_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, index=True,
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
