"""Domain Records — immutable value objects exchanged between core and stores.

Invariants:
    - Records are frozen: a state change is a new record written through a store
    - Message.mailbox_ids lists every mailbox the record is delivered to
    - from_id None means the record sits in the author's own mailbox

Design Decisions:
    - Dataclasses over ORM instances in core: pure logic never touches a session
      (ADR: functional core, stores translate rows <-> records)
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal

from lendbridge.core.domain_types import (
    ListingId, ListingKind, MessageId, MessageType, TransactionId,
    TransactionStatus, UserId,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Listing:
    """Borrow or Lend listing. The protocol reads only owner, deadline, amount."""
    id: ListingId
    kind: ListingKind
    owner_id: UserId
    deadline: date
    max_amount: Decimal
    max_rate: Decimal | None = None
    city: str | None = None
    project: str | None = None
    reason: str | None = None
    risk_factor: int | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Transaction:
    """Aggregate of one borrower/lender negotiation."""
    id: TransactionId
    initiator_id: UserId
    borrow_id: ListingId
    lend_id: ListingId
    status: TransactionStatus = TransactionStatus.REQUESTED
    created_at: datetime = field(default_factory=utcnow)

    def with_status(self, status: TransactionStatus) -> "Transaction":
        return replace(self, status=status)


@dataclass(frozen=True)
class Message:
    """Typed, directed record: carries protocol state and authorizes the next step."""
    id: MessageId
    type: MessageType
    to_id: UserId | None
    from_id: UserId | None = None
    transaction_id: TransactionId | None = None
    listing_id: ListingId | None = None
    mailbox_ids: tuple[UserId, ...] = ()
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if not self.mailbox_ids and self.to_id is not None:
            object.__setattr__(self, "mailbox_ids", (self.to_id,))

    def with_type(self, new_type: MessageType) -> "Message":
        return replace(self, type=new_type)
