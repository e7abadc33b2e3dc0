"""Negotiation Schemas — request bodies and responses for protocol endpoints.

Invariants:
    - Ids arrive as raw strings; well-formedness is checked by core/validate_input.py
      so malformed ids map to INVALID_INPUT like every other protocol failure
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from lendbridge.core.records import Message, Transaction


class LoanRequest(BaseModel):
    """Borrower asks the owner of lend_id for a loan against borrow_id."""
    borrow_id: str | None = None
    lend_id: str | None = None


class MessageAction(BaseModel):
    """Act on a message the caller holds in their mailbox."""
    message_id: str | None = None


class ActionResponse(BaseModel):
    status: str = "ok"
    transaction_id: UUID


class TransactionResponse(BaseModel):
    id: UUID
    initiator_id: UUID
    borrow_id: UUID
    lend_id: UUID
    status: str
    created_at: datetime

    @classmethod
    def from_record(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            initiator_id=transaction.initiator_id,
            borrow_id=transaction.borrow_id,
            lend_id=transaction.lend_id,
            status=transaction.status.value,
            created_at=transaction.created_at,
        )


class MessageResponse(BaseModel):
    """Mailbox entry with its transaction embedded (None for publish notices)."""
    id: UUID
    type: str
    from_id: UUID | None
    to_id: UUID | None
    listing_id: UUID | None
    transaction: TransactionResponse | None
    created_at: datetime

    @classmethod
    def from_record(
        cls, message: Message, transaction: Transaction | None,
    ) -> "MessageResponse":
        return cls(
            id=message.id,
            type=message.type.value,
            from_id=message.from_id,
            to_id=message.to_id,
            listing_id=message.listing_id,
            transaction=(
                TransactionResponse.from_record(transaction) if transaction else None
            ),
            created_at=message.created_at,
        )
