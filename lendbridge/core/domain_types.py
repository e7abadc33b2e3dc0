"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, ListingId, MessageId, TransactionId wrap UUIDs — never use bare UUID in domain logic
    - All protocol tags encoded as Enums — no raw string matching in core
    - A consumed message type is always its live type plus CONSUMED_SUFFIX

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and to DB String columns without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
ListingId = NewType("ListingId", UUID)
MessageId = NewType("MessageId", UUID)
TransactionId = NewType("TransactionId", UUID)


CONSUMED_SUFFIX = "&Accepted"


# ─── Enums ───────────────────────────────────────────────────────

class ListingKind(str, Enum):
    """Borrow = loan request, Lend = loan offer."""
    BORROW = "borrow"
    LEND = "lend"


class TransactionStatus(str, Enum):
    """Transaction lifecycle — strictly Requested -> Progressing -> Completed."""
    REQUESTED = "Requested"
    PROGRESSING = "Progressing"
    COMPLETED = "Completed"


class MessageType(str, Enum):
    """Protocol tags carried by messages. *_CONSUMED members are historical."""
    PUBLISH_BORROW = "Publish-Borrow"
    PUBLISH_LEND = "Publish-Lend"

    REQUEST_RECEIVED = "BorrowRequest-Received"
    REQUEST_SENT = "BorrowRequest-Sent"
    REQUEST_ACCEPTED = "BorrowRequest-Accepted"
    REQUEST_RECEIVED_CONSUMED = "BorrowRequest-Received" + CONSUMED_SUFFIX

    CONTRACT_RECEIVED = "BorrowContract-Received"
    CONTRACT_SENT = "BorrowContract-Sent"
    CONTRACT_ACCEPTED = "BorrowContract-Accepted"
    CONTRACT_RECEIVED_CONSUMED = "BorrowContract-Received" + CONSUMED_SUFFIX

    COMPLETED = "Borrow-Completed"

    def consumed(self) -> "MessageType":
        """The historical tag this type becomes once acted upon."""
        return MessageType(self.value + CONSUMED_SUFFIX)


class TimelineKind(str, Enum):
    """Feed entries posted after successful operations."""
    BORROW_PUBLISHED = "Borrow"
    LOAN_COMPLETED = "Loan-Completed"


# Message types shown in a user's negotiation mailbox
MAILBOX_TYPE_PREFIXES: tuple[str, ...] = ("Borrow", "Publish-Borrow", "Publish-Lend")
